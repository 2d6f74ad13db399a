"""Auth domain - Registration, OTP verification, login and tokens"""
