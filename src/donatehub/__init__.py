"""DonateHub API: donation ledger and campaign reporting."""
