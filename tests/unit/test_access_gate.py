"""Role and ownership gate."""

import pytest

from donatehub.auth.access import check_owner, check_role, has_role, is_owner
from donatehub.auth.principal import Principal
from donatehub.errors import AuthenticationError, AuthorizationError, OwnershipError

NGO = Principal(id="ngo-1", role="ngo", username="helpinghands")
DONOR = Principal(id="donor-1", role="donor", username="generous")


class TestRoleGate:
    def test_allowed_role_returns_principal(self):
        assert check_role(NGO, "ngo") is NGO

    def test_any_of_several_roles(self):
        assert check_role(DONOR, "ngo", "donor") is DONOR

    def test_wrong_role(self):
        with pytest.raises(AuthorizationError, match="Only NGOs"):
            check_role(DONOR, "ngo", message="Only NGOs can create campaigns")

    def test_default_message_names_roles(self):
        with pytest.raises(AuthorizationError, match="ngo"):
            check_role(DONOR, "ngo")

    def test_missing_principal_is_unauthenticated(self):
        with pytest.raises(AuthenticationError):
            check_role(None, "donor")

    def test_predicate(self):
        assert has_role(NGO, "ngo") is True
        assert has_role(None, "ngo") is False
        assert NGO.is_ngo and DONOR.is_donor


class TestOwnershipGate:
    def test_owner_passes(self):
        check_owner(NGO, "ngo-1")

    def test_other_user_rejected(self):
        with pytest.raises(OwnershipError, match="your own"):
            check_owner(NGO, "ngo-2", "You can only update your own campaigns")

    def test_ownership_and_role_errors_are_distinct(self):
        assert OwnershipError.status_code == AuthorizationError.status_code == 403
        assert not issubclass(OwnershipError, AuthorizationError)

    def test_predicate(self):
        assert is_owner(DONOR, "donor-1") is True
        assert is_owner(None, "donor-1") is False
