"""Notification domain - In-app notifications"""
