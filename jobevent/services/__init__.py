"""Cross-domain services"""
