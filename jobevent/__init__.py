"""Job Event Platform API"""
