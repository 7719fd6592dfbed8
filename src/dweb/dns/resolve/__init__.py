"""
Name Resolution Protocols

This package implements the two protocols used to discover the key a dweb name
points to.

Key Components:
- doh.py: DNS-over-HTTPS TXT record lookup (dwebkey=<key>)
- well_known.py: HTTPS lookup of /.well-known/<record-name> (dweb://<key>)
- http.py: Shared fetch helper and TTL rules

Each protocol is split into a fetch step, which never raises for transport
failures and reports them as status 0, and a parse step, which raises on
malformed records. The resolver decides how failures of each protocol are
treated.
"""
