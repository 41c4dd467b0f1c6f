import pytest

from rigmarket.errors import AuthorizationError, NotFoundError, ValidationError
from rigmarket.schemas import User

BUILD_PARTS = ["cpu-i7-13700k", "mb-z790-e", "ram-ddr5-32", "psu-rm850x"]


@pytest.fixture
def second_assembler(users):
    return users.create_user(User(id="u-assembler-2", name="Second Assembler", role="assembler"))


def test_create_build_snapshots_components(builds, actors, store):
    build, verdict = builds.create_build(actors["user"], BUILD_PARTS)

    assert build.assembly_status == "Pending"
    assert build.assembler_id is None
    assert build.user_id == "u-user"
    assert [c.component_id for c in build.components] == BUILD_PARTS
    assert build.total_price == 1019.96
    assert build.is_compatible is verdict.is_compatible is True
    assert store.get("builds", build.id) is not None


def test_snapshot_survives_catalog_edits(builds, actors, catalog, store):
    build, _ = builds.create_build(actors["user"], BUILD_PARTS)
    catalog.delete_component(actors["admin"], "cpu-i7-13700k")

    reloaded = builds.get_build(actors["user"], build.id)
    assert reloaded.components[0].component_name == "Intel Core i7-13700K"
    assert reloaded.total_price == 1019.96


def test_incompatible_build_is_still_created(builds, actors):
    build, verdict = builds.create_build(actors["user"], ["cpu-r7-7700x", "mb-z790-e"])

    assert build.is_compatible is False
    assert build.compatibility_check.issues == verdict.issues
    assert "CPU socket (AM5) does not match Motherboard socket (LGA1700)" in verdict.issues


def test_out_of_stock_component_fails_whole_build(builds, actors, store):
    with pytest.raises(ValidationError, match="not found or out of stock"):
        builds.create_build(actors["user"], ["cpu-r5-5600", "mb-z790-e", "ram-ddr5-32", "psu-rm850x"])

    assert store.all("builds") == []


def test_unknown_component_fails_whole_build(builds, actors, store):
    with pytest.raises(ValidationError):
        builds.create_build(actors["user"], ["mb-z790-e", "does-not-exist"])

    assert store.all("builds") == []


@pytest.mark.parametrize("ids", [[], None, "cpu-i7-13700k", ["psu-rm850x", "psu-rm850x"]])
def test_bad_component_lists_are_rejected(builds, actors, ids):
    with pytest.raises(ValidationError):
        builds.create_build(actors["user"], ids)


@pytest.mark.parametrize("role", ["admin", "assembler", "supplier"])
def test_only_customers_create_builds(builds, actors, role):
    with pytest.raises(AuthorizationError):
        builds.create_build(actors[role], BUILD_PARTS)


def test_assembler_claims_unassigned_build(builds, actors, second_assembler):
    build, _ = builds.create_build(actors["user"], BUILD_PARTS)

    claimed = builds.update_status(actors["assembler"], build.id, "Assembling")
    assert claimed.assembly_status == "Assembling"
    assert claimed.assembler_id == "u-assembler"

    for status in ("Pending", "Assembling", "Completed"):
        with pytest.raises(AuthorizationError, match="You can only update assigned builds"):
            builds.update_status(second_assembler, build.id, status)


def test_full_lifecycle_and_step_back(builds, actors):
    build, _ = builds.create_build(actors["user"], BUILD_PARTS)
    assembler = actors["assembler"]

    builds.update_status(assembler, build.id, "Assembling")
    back = builds.update_status(assembler, build.id, "Pending")
    assert back.assembly_status == "Pending"
    assert back.assembler_id == "u-assembler"

    builds.update_status(assembler, build.id, "Assembling")
    done = builds.update_status(assembler, build.id, "Completed")
    assert done.assembly_status == "Completed"

    for status in ("Pending", "Assembling", "Completed"):
        with pytest.raises(ValidationError, match="Cannot change status from Completed"):
            builds.update_status(actors["admin"], build.id, status)


def test_pending_cannot_skip_to_completed(builds, actors):
    build, _ = builds.create_build(actors["user"], BUILD_PARTS)

    with pytest.raises(ValidationError, match="Cannot change status from Pending to Completed"):
        builds.update_status(actors["admin"], build.id, "Completed")
    with pytest.raises(ValidationError):
        builds.update_status(actors["admin"], build.id, "Pending")


def test_status_value_is_checked_before_anything_else(builds, actors):
    with pytest.raises(ValidationError, match="Invalid status"):
        builds.update_status(actors["assembler"], "missing-build", "Shipped")
    with pytest.raises(NotFoundError):
        builds.update_status(actors["assembler"], "missing-build", "Assembling")


def test_customers_and_suppliers_cannot_move_builds(builds, actors):
    build, _ = builds.create_build(actors["user"], BUILD_PARTS)

    for role in ("user", "supplier"):
        with pytest.raises(AuthorizationError):
            builds.update_status(actors[role], build.id, "Assembling")


def test_assign_moves_pending_build_to_assembling(builds, actors):
    build, _ = builds.create_build(actors["user"], BUILD_PARTS)

    assigned = builds.assign(actors["admin"], build.id, "u-assembler")

    assert assigned.assembler_id == "u-assembler"
    assert assigned.assembly_status == "Assembling"


def test_assign_validation(builds, actors):
    build, _ = builds.create_build(actors["user"], BUILD_PARTS)
    admin = actors["admin"]

    with pytest.raises(ValidationError, match="Please provide assemblerID"):
        builds.assign(admin, build.id, None)
    with pytest.raises(NotFoundError, match="User not found"):
        builds.assign(admin, build.id, "u-ghost")
    with pytest.raises(ValidationError, match="User is not an assembler"):
        builds.assign(admin, build.id, "u-supplier")
    with pytest.raises(NotFoundError, match="Build not found"):
        builds.assign(admin, "missing-build", "u-assembler")
    with pytest.raises(AuthorizationError):
        builds.assign(actors["assembler"], build.id, "u-assembler")


def test_visibility_by_role(builds, actors, users, second_assembler):
    other_customer = users.create_user(User(id="u-user-2", name="Other", role="user"))
    mine, _ = builds.create_build(actors["user"], BUILD_PARTS)
    theirs, _ = builds.create_build(other_customer, ["gpu-rtx-4060"])
    builds.assign(actors["admin"], theirs.id, "u-assembler-2")

    assert [b.id for b in builds.list_builds(actors["user"])] == [mine.id]
    assert [b.id for b in builds.list_builds(second_assembler)] == [theirs.id]
    assert builds.list_builds(actors["assembler"]) == []
    assert {b.id for b in builds.list_builds(actors["admin"])} == {mine.id, theirs.id}
    assert {b.id for b in builds.list_builds(actors["supplier"])} == {mine.id, theirs.id}
    assert [b.id for b in builds.list_builds(actors["admin"], status="Assembling")] == [theirs.id]

    with pytest.raises(AuthorizationError, match="Access denied"):
        builds.get_build(actors["user"], theirs.id)
    with pytest.raises(AuthorizationError):
        builds.get_build(actors["assembler"], theirs.id)
    assert builds.get_build(second_assembler, theirs.id).id == theirs.id
    with pytest.raises(ValidationError):
        builds.list_builds(actors["admin"], status="Shipped")


def test_delete_build_owner_or_admin(builds, actors, users, store):
    other_customer = users.create_user(User(id="u-user-2", name="Other", role="user"))
    build, _ = builds.create_build(actors["user"], BUILD_PARTS)

    with pytest.raises(AuthorizationError, match="You can only delete your own builds"):
        builds.delete_build(other_customer, build.id)

    builds.delete_build(actors["user"], build.id)
    assert store.get("builds", build.id) is None

    second, _ = builds.create_build(actors["user"], BUILD_PARTS)
    builds.delete_build(actors["admin"], second.id)
    with pytest.raises(NotFoundError):
        builds.get_build(actors["admin"], second.id)
