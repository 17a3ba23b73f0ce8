"""Tests for the super admin organization and member endpoints."""

import json

import pytest
from httpx import AsyncClient

from volunteer_hub.db.enums import Role
from volunteer_hub.db.models import Organization, User, WhitelistedEmail
from volunteer_hub.services.user_service import legacy_notes_json


# =============================================================================
# Access
# =============================================================================

@pytest.mark.asyncio
async def test_nonprofit_admin_forbidden(admin_client: AsyncClient):
    response = await admin_client.get("/super-admin/organizations")
    assert response.status_code == 403
    assert response.json()["message"] == "Role 'nonprofit_admin' not authorized for this action"


@pytest.mark.asyncio
async def test_unauthenticated_rejected(client: AsyncClient):
    response = await client.get("/super-admin/dashboard")
    assert response.status_code == 401


# =============================================================================
# Organizations
# =============================================================================

@pytest.mark.asyncio
async def test_create_organization_with_admin(super_admin_client: AsyncClient, db):
    response = await super_admin_client.post(
        "/super-admin/organizations",
        json={
            "name": "  Food Bank ",
            "password": "pantry123",
            "contactEmail": "Info@FoodBank.org",
            "nonprofitAdminEmail": "Boss@FoodBank.org",
        },
    )
    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Organization created successfully"
    assert body["organization"]["name"] == "Food Bank"
    assert body["organization"]["contact_email"] == "info@foodbank.org"
    assert body["organization"]["is_active"] is True

    entry = db.query(WhitelistedEmail).filter_by(email="boss@foodbank.org").one()
    assert entry.role == Role.NONPROFIT_ADMIN.value
    assert entry.admin_notes == "Initial admin added during organization creation"
    assert entry.added_by == "root@platform.org"


@pytest.mark.asyncio
async def test_new_organization_admin_can_log_in(super_admin_client: AsyncClient, client: AsyncClient):
    await super_admin_client.post(
        "/super-admin/organizations",
        json={"name": "Food Bank", "password": "pantry123", "nonprofitAdminEmail": "boss@food.org"},
    )

    response = await client.post(
        "/auth/login",
        json={"email": "boss@food.org", "password": "pantry123"},
    )
    assert response.status_code == 200
    assert response.json()["userType"] == "nonprofit_admin"


@pytest.mark.asyncio
async def test_create_organization_validation(super_admin_client: AsyncClient, test_org, admin_user):
    short = await super_admin_client.post(
        "/super-admin/organizations", json={"name": "Tiny", "password": "short"}
    )
    assert short.status_code == 400
    assert short.json()["message"] == "Password must be at least 8 characters long"

    duplicate = await super_admin_client.post(
        "/super-admin/organizations", json={"name": "helping hands", "password": "longenough"}
    )
    assert duplicate.status_code == 400
    assert duplicate.json()["message"] == "An organization with this name already exists"

    taken = await super_admin_client.post(
        "/super-admin/organizations",
        json={"name": "Other", "password": "longenough", "nonprofitAdminEmail": "admin@helping.org"},
    )
    assert taken.status_code == 400
    assert taken.json()["message"] == "This email is already whitelisted for an organization"

    blank = await super_admin_client.post(
        "/super-admin/organizations", json={"name": "   ", "password": "longenough"}
    )
    assert blank.status_code == 400
    assert blank.json()["message"] == "Organization name is required"


@pytest.mark.asyncio
async def test_list_organizations_with_counts(
    super_admin_client: AsyncClient, test_org, admin_user, volunteer_user
):
    response = await super_admin_client.get("/super-admin/organizations")
    assert response.status_code == 200
    [org] = response.json()["organizations"]
    assert org["name"] == "Helping Hands"
    assert org["user_count"] == 2
    assert org["task_count"] == 0


@pytest.mark.asyncio
async def test_update_organization(super_admin_client: AsyncClient, test_org, org_factory):
    org_factory("Food Bank")

    response = await super_admin_client.put(
        f"/super-admin/organizations/{test_org.id}",
        json={"website": "https://helping.org", "description": "Neighbors helping neighbors"},
    )
    assert response.status_code == 200
    assert response.json()["message"] == "Organization updated successfully"
    assert response.json()["organization"]["website"] == "https://helping.org"

    clash = await super_admin_client.put(
        f"/super-admin/organizations/{test_org.id}", json={"name": "Food Bank"}
    )
    assert clash.status_code == 400

    empty = await super_admin_client.put(f"/super-admin/organizations/{test_org.id}", json={})
    assert empty.json()["message"] == "No fields to update"


@pytest.mark.asyncio
async def test_update_unknown_organization(super_admin_client: AsyncClient):
    response = await super_admin_client.put(
        "/super-admin/organizations/00000000-0000-0000-0000-000000000000",
        json={"name": "Ghost"},
    )
    assert response.status_code == 404
    assert response.json()["message"] == "Organization not found"


@pytest.mark.asyncio
async def test_deactivate_organization_blocks_members(
    super_admin_client: AsyncClient, client: AsyncClient, db, test_org, volunteer_user
):
    response = await super_admin_client.put(
        f"/super-admin/organizations/{test_org.id}/status", json={"is_active": False}
    )
    assert response.status_code == 200
    assert response.json()["message"] == "Organization deactivated successfully"
    db.refresh(test_org)
    assert test_org.is_active is False

    login = await client.post(
        "/auth/login", json={"email": "vol@helping.org", "password": "orgpass123"}
    )
    assert login.status_code == 401

    response = await super_admin_client.put(
        f"/super-admin/organizations/{test_org.id}/status", json={"is_active": True}
    )
    assert response.json()["message"] == "Organization activated successfully"


# =============================================================================
# Users
# =============================================================================

@pytest.mark.asyncio
async def test_add_user(super_admin_client: AsyncClient, db, test_org):
    response = await super_admin_client.post(
        "/super-admin/users",
        json={
            "email": " New@Helping.org ",
            "organizationId": str(test_org.id),
            "role": "volunteer",
            "notes": "Weekend shifts",
        },
    )
    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "User added successfully"
    assert body["user"]["email"] == "new@helping.org"
    assert body["user"]["admin_notes"] == "Weekend shifts"
    assert body["user"]["user_id"] is None
    assert body["user"]["display_name"] == "new@helping.org"
    assert db.query(WhitelistedEmail).filter_by(email="new@helping.org").one().added_by == (
        "root@platform.org"
    )


@pytest.mark.asyncio
async def test_add_user_errors(
    super_admin_client: AsyncClient, test_org, volunteer_user, org_factory
):
    invalid = await super_admin_client.post(
        "/super-admin/users", json={"email": "nope", "organizationId": str(test_org.id)}
    )
    assert invalid.json()["message"] == "A valid email is required"

    duplicate = await super_admin_client.post(
        "/super-admin/users",
        json={"email": "VOL@helping.org", "organizationId": str(test_org.id)},
    )
    assert duplicate.status_code == 400
    assert duplicate.json()["message"] == "User with this email already exists"

    super_email = await super_admin_client.post(
        "/super-admin/users",
        json={"email": "root@platform.org", "organizationId": str(test_org.id)},
    )
    assert super_email.json()["message"] == "User with this email already exists"

    dormant = org_factory("Closed Shelter", is_active=False)
    inactive = await super_admin_client.post(
        "/super-admin/users", json={"email": "x@closed.org", "organizationId": str(dormant.id)}
    )
    assert inactive.json()["message"] == "Organization is not active"

    missing = await super_admin_client.post(
        "/super-admin/users",
        json={"email": "x@ghost.org", "organizationId": "00000000-0000-0000-0000-000000000000"},
    )
    assert missing.status_code == 404
    assert missing.json()["message"] == "Organization not found"


@pytest.mark.asyncio
async def test_list_users_filtered_by_organization(
    super_admin_client: AsyncClient, test_org, volunteer_user, org_factory, member_factory
):
    other = org_factory("Food Bank")
    member_factory(other, "cook@food.org")

    everyone = await super_admin_client.get("/super-admin/users")
    assert {u["email"] for u in everyone.json()["users"]} == {"vol@helping.org", "cook@food.org"}

    scoped = await super_admin_client.get(
        "/super-admin/users", params={"organizationId": str(other.id)}
    )
    [user] = scoped.json()["users"]
    assert user["email"] == "cook@food.org"
    assert user["organization_name"] == "Food Bank"


@pytest.mark.asyncio
async def test_update_role(super_admin_client: AsyncClient, db, test_org, volunteer_user, org_factory):
    response = await super_admin_client.put(
        "/super-admin/users/vol@helping.org/role",
        json={"role": "nonprofit_admin", "organizationId": str(test_org.id)},
    )
    assert response.status_code == 200
    assert response.json()["message"] == "User role updated successfully"
    db.refresh(volunteer_user)
    assert volunteer_user.role == Role.NONPROFIT_ADMIN.value

    elsewhere = org_factory("Food Bank")
    missing = await super_admin_client.put(
        "/super-admin/users/vol@helping.org/role",
        json={"role": "volunteer", "organizationId": str(elsewhere.id)},
    )
    assert missing.status_code == 404
    assert missing.json()["message"] == "User not found in this organization"

    bad_role = await super_admin_client.put(
        "/super-admin/users/vol@helping.org/role",
        json={"role": "super_admin", "organizationId": str(test_org.id)},
    )
    assert bad_role.status_code == 400


@pytest.mark.asyncio
async def test_update_user_moves_organization(
    super_admin_client: AsyncClient, db, volunteer_user, org_factory
):
    food_bank = org_factory("Food Bank")

    response = await super_admin_client.put(
        "/super-admin/users/vol@helping.org",
        json={"organizationId": str(food_bank.id), "firstName": "Vic", "phone": "555-0101"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "User updated successfully"
    assert body["user"]["organization_name"] == "Food Bank"
    assert body["user"]["display_name"] == "Vic Volunteer"
    assert body["user"]["phone"] == "555-0101"

    db.refresh(volunteer_user)
    assert volunteer_user.organization_id == food_bank.id


@pytest.mark.asyncio
async def test_update_user_rewrites_legacy_notes(super_admin_client: AsyncClient, db, volunteer_user):
    volunteer_user.legacy_notes = legacy_notes_json("Old", "Name")
    db.commit()

    phone_only = await super_admin_client.put(
        "/super-admin/users/vol@helping.org", json={"phone": "555-0102"}
    )
    assert phone_only.json()["user"]["display_name"] == "Old Name"

    response = await super_admin_client.put(
        "/super-admin/users/vol@helping.org", json={"firstName": "New", "lastName": "Person"}
    )
    assert response.status_code == 200
    assert response.json()["user"]["display_name"] == "New Person"

    listing = await super_admin_client.get("/super-admin/users")
    names = {u["email"]: u["display_name"] for u in listing.json()["users"]}
    assert names["vol@helping.org"] == "New Person"

    db.refresh(volunteer_user)
    notes = json.loads(volunteer_user.legacy_notes)
    assert (notes["firstName"], notes["lastName"], notes["phone"]) == ("New", "Person", "555-0102")


@pytest.mark.asyncio
async def test_update_user_creates_record_for_never_logged_in(
    super_admin_client: AsyncClient, db, test_org
):
    db.add(WhitelistedEmail(email="fresh@helping.org", organization_id=test_org.id, role="volunteer"))
    db.commit()

    response = await super_admin_client.put(
        "/super-admin/users/fresh@helping.org", json={"firstName": "Fresh", "lastName": "Face"}
    )
    assert response.status_code == 200
    user = db.query(User).filter_by(email="fresh@helping.org").one()
    assert (user.first_name, user.last_name) == ("Fresh", "Face")


@pytest.mark.asyncio
async def test_update_user_errors(super_admin_client: AsyncClient, volunteer_user):
    missing = await super_admin_client.put("/super-admin/users/ghost@x.org", json={"notes": "hi"})
    assert missing.status_code == 404
    assert missing.json()["message"] == "User not found"

    empty = await super_admin_client.put("/super-admin/users/vol@helping.org", json={})
    assert empty.json()["message"] == "No fields to update"


@pytest.mark.asyncio
async def test_remove_user(super_admin_client: AsyncClient, db, volunteer_user):
    response = await super_admin_client.delete("/super-admin/users/vol@helping.org")
    assert response.status_code == 200
    assert response.json()["message"] == "User removed successfully"
    assert db.query(User).filter_by(email="vol@helping.org").count() == 0
    assert db.query(WhitelistedEmail).filter_by(email="vol@helping.org").count() == 0

    again = await super_admin_client.delete("/super-admin/users/vol@helping.org")
    assert again.status_code == 404


@pytest.mark.asyncio
async def test_remove_user_is_exact_match(super_admin_client: AsyncClient, db, volunteer_user, test_org):
    db.add(WhitelistedEmail(email="vol@helping.org.uk", organization_id=test_org.id, role="volunteer"))
    db.commit()

    await super_admin_client.delete("/super-admin/users/vol@helping.org")
    assert db.query(WhitelistedEmail).filter_by(email="vol@helping.org.uk").count() == 1


# =============================================================================
# Dashboard
# =============================================================================

@pytest.mark.asyncio
async def test_platform_dashboard(
    super_admin_client: AsyncClient, db, test_org, admin_user, volunteer_user, org_factory
):
    org_factory("Dormant", is_active=False)
    volunteer_user.login_count = 4
    db.commit()

    response = await super_admin_client.get("/super-admin/dashboard")
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["stats"]["total_organizations"] == 2
    assert body["stats"]["active_organizations"] == 1
    assert body["stats"]["total_users"] == 2
    assert body["analytics"]["total_logins"] == 4
    assert body["analytics"]["new_users_this_month"] == 2
    assert body["analytics"]["top_organizations"][0]["name"] == "Helping Hands"
    assert {o["name"] for o in body["recent_organizations"]} == {"Helping Hands", "Dormant"}
    assert db.query(Organization).count() == 2
