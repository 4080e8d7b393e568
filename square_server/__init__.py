"""
Square World server: a real-time position and chat broadcast server.
"""
