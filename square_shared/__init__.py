"""
Code shared between the Square World server and its clients.
"""
