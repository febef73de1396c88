"""
Authentication app: user identity and profile (including the push token).
"""
