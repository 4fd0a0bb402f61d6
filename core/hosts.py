"""Upstream host list for the reference deployment.

Keys become path prefixes (``d1`` -> ``/d1``) and values the HTTPS upstream
host. Changing the topology means editing this mapping and redeploying.
"""

UPSTREAM_DOMAIN = "api.augmentcode.com"

UPSTREAM_HOSTS: dict[str, str] = {
    **{f"d{n}": f"d{n}.{UPSTREAM_DOMAIN}" for n in range(1, 21)},
    **{f"i{n}": f"i{n}.{UPSTREAM_DOMAIN}" for n in range(1, 11)},
}
