"""Application domain - CTV applications and their lifecycle"""
