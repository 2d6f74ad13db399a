"""Event domain - Event postings by organizers"""
