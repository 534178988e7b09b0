"""auth/ -- Authentication service and credential drivers for authgate.

Layer rule: auth/ imports from core/ and session/ only.
core/ and session/ never import from auth/.
"""
