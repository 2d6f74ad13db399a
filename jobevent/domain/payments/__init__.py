"""Payment domain - Gateway checkouts and callbacks"""
