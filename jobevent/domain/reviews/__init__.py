"""Review domain - Two-way reviews and reputation"""
