"""tasks/ -- Weekly task board: per-owner task storage and the ordering model.

Layer rule: tasks/ imports only stdlib, third-party libraries and core/.
It does NOT import from api/ or auth/. Ownership arrives as a plain owner id.
"""
