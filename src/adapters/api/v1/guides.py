"""Usage guides for callers of the registry endpoints.

Plain-text guidance on building safe queries and on reading the error codes
the service returns. Both guides are static apart from echoing the path
pattern the caller asks about.
"""

from fastapi import APIRouter, Query
from pydantic import BaseModel

router = APIRouter()


class GuideResponse(BaseModel):
    title: str
    text: str


SAFE_QUERY_TEMPLATE = """\
When querying the registry at: {path_pattern}

1. Write paths as HIVE\\SubKey\\SubKey. Full hive names (HKEY_CURRENT_USER)
   and aliases (HKCU) are both accepted, in any case, with \\ or / as separator.
2. Stay away from security-critical keys (SECURITY, SAM, LSA); they are denied
   regardless of any other rule.
3. Ask for the smallest enumeration depth that answers the question; the
   service reduces larger requests to the depth the policy allows.
4. Expect 403 "Access not permitted" for anything outside the allowed roots.

Example:
POST /api/v1/registry/values/read
{{"path": "HKEY_CURRENT_USER\\\\Software\\\\MyApp", "name": "Setting1"}}
"""

TROUBLESHOOTING_TEXT = """\
Common responses and what to do about them:

403 access_not_permitted
  reason insufficient-caller-tier: the service runs with a lower
    AUTHORIZATION_LEVEL than the operation needs (writes need READ_WRITE,
    deletes need ADMIN).
  reason explicitly-denied: the path lies under a denied path.
  reason not-in-allow-list: no allowed root covers the path; check the
    policy file named by ALLOWED_PATHS_FILE.
  reason rule-insufficient-tier: the matching rule only grants a lower tier.

400 invalid_path / invalid_value_type
  The path is empty, names an unknown hive or contains a null character,
  or the data does not fit the requested value type.

404 key_not_found / value_not_found
  The key or value does not exist. Reads report exists=false instead.

422 limit_exceeded
  Too many keys or values, or a value larger than allowed. Query a more
  specific path or lower the depth.

504 operation_timeout
  The registry did not answer in time. Retry with a narrower query.

Paths readable under the built-in policy:
  HKEY_CURRENT_USER\\Software
  HKEY_LOCAL_MACHINE\\SOFTWARE\\Microsoft\\Windows\\CurrentVersion

Always denied under the built-in policy:
  HKEY_LOCAL_MACHINE\\SECURITY
  HKEY_LOCAL_MACHINE\\SAM
  HKEY_LOCAL_MACHINE\\SYSTEM\\CurrentControlSet\\Control\\Lsa

Quote the X-Correlation-ID response header when reporting a problem.
"""


@router.get("/safe-query", response_model=GuideResponse)
async def safe_query_guide(
    path_pattern: str = Query(..., min_length=1, max_length=2048, description="Path to be queried"),
):
    """Guidance for building a safe query against `path_pattern`."""
    return GuideResponse(
        title="Safe registry queries",
        text=SAFE_QUERY_TEMPLATE.format(path_pattern=path_pattern),
    )


@router.get("/troubleshooting", response_model=GuideResponse)
async def troubleshooting_guide():
    """Explain the error responses and how to resolve them."""
    return GuideResponse(title="Troubleshooting registry access", text=TROUBLESHOOTING_TEXT)
