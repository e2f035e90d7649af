"""
Basic example demonstrating fastapi-idm-authz usage.

Run with:
    uvicorn examples.basic_app:app --reload

Then call the API with HTTP Basic auth, e.g.:
    curl -u alice:anything http://localhost:18000/reports
"""

from typing import Annotated

import uvicorn
from fastapi import Depends, FastAPI, Header, HTTPException

from fastapi_idm import (
    IdentityAuthz,
    InMemoryIdentityStore,
    InvalidCredentials,
    PasswordAuthentication,
    require,
)


# =============================================================================
# Identity Store
# =============================================================================
store = InMemoryIdentityStore()

staff = store.add_group("staff")
editors = store.add_group("editors", staff)
admins = store.add_group("admins")

viewer = store.add_role("viewer")
editor = store.add_role("editor")
admin = store.add_role("admin")

# Granted on a parent group, held by every descendant group and its members
store.add_grant(staff, viewer)
store.add_grant(editors, editor)
store.add_grant(admins, admin)

store.add_membership(store.add_caller("alice"), editors)
store.add_membership(store.add_caller("bob"), staff)
store.add_membership(store.add_caller("root"), admins)

# Fake report database (report_id -> owner)
REPORTS = {
    1: {"title": "Q1 Sales Report", "owner": "alice"},
    2: {"title": "Q2 Sales Report", "owner": "alice"},
    3: {"title": "Engineering Report", "owner": "root"},
}


# =============================================================================
# Role Permissions
# =============================================================================
PERMISSIONS = {
    "admin": {"*"},  # Admin can do everything
    "editor": {"report:create,update"},
    "viewer": {"report:read"},
}


# =============================================================================
# Authentication Dependency
# =============================================================================
async def get_current_user(authorization: Annotated[str, Header()]) -> PasswordAuthentication:
    """Accept any password; only the username matters for this example."""
    try:
        return PasswordAuthentication.from_basic_header(authorization)
    except InvalidCredentials as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc


# =============================================================================
# Application Setup
# =============================================================================
app = FastAPI(
    title="Identity Authz Example",
    description="Example app demonstrating fastapi-idm-authz",
)

IdentityAuthz(
    app,
    store,
    get_caller_name=lambda event: event.username,
    permissions=PERMISSIONS,
    user_dependency=get_current_user,
)


# =============================================================================
# Routes
# =============================================================================
@app.get("/reports", tags=["Reports"], dependencies=[Depends(require(permissions={"report:read"}))])
async def list_reports():
    """List all reports. Requires report:read (viewer role, inherited from /staff)."""
    return [{"id": k, **v} for k, v in REPORTS.items()]


@app.put("/reports/{report_id}", tags=["Reports"], dependencies=[Depends(require(permissions={"report:update"}))])
async def update_report(report_id: int, title: str):
    """Update a report. Requires report:update (editor role)."""
    report = REPORTS.get(report_id)
    if not report:
        raise HTTPException(status_code=404, detail="Report not found")
    report["title"] = title
    return {"id": report_id, **report}


@app.post("/reports", tags=["Reports"], dependencies=[Depends(require(permissions={"report:create"}))])
async def create_report(title: str, event: Annotated[PasswordAuthentication, Depends(get_current_user)]):
    """Create a new report owned by the caller."""
    new_id = max(REPORTS.keys()) + 1
    REPORTS[new_id] = {"title": title, "owner": event.username}
    return {"id": new_id, **REPORTS[new_id]}


@app.get("/admin/groups", tags=["Admin"], dependencies=[Depends(require(groups={"/admins"}))])
async def list_groups():
    """List the group tree. Only members of /admins."""
    return [{"id": g.id, "name": g.name, "parent_id": g.parent_id} for g in store.groups()]


# =============================================================================
# Health Check (no auth required)
# =============================================================================
@app.get("/health", tags=["Health"])
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    uvicorn.run(app, port=18_000)
