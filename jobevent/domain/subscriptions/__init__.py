"""Subscription domain - Plans and Premium upgrades"""
