"""auth/ -- Credential issuance and session continuity for the employee directory.

Layer rule: auth/ imports only stdlib, third-party libraries, core/ and
employees/ (provisioning creates profiles). It does NOT import from api/.
api/ imports from auth/, not the other way around.
"""
