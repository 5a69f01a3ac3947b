"""auth/ -- Accounts, credentials, and bearer tokens for the contributor service.

Layer rule: auth/ imports only stdlib + third-party libraries (plus core/ for
settings). It does NOT import from api/.
api/ imports from auth/, not the other way around.
"""
