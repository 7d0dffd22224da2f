"""Authentication.

Learn: Accounts, passwords and login live in the main FitCoach API.
This service only needs to know WHO is calling: it verifies the same
HS256 JWT access tokens and reads the user id from the "sub" claim.
"""
