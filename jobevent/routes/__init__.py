"""Standalone routers"""
