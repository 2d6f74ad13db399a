"""User domain - Accounts and CTV/BTC profiles"""
