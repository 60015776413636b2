"""
Tests for demo data seeding.
"""
from app.models import ControlImplementation, ControlStatus, SecurityControl, SubControlImplementation
from app.services.demo_seeder import DEMO_CONTROLS, DEMO_ITEMS, seed_demo_data
from app.services.implementation_service import ImplementationService
from app.services.status_rules import is_green_eligible


def test_seed_populates_all_tables(db_session):
    summary = seed_demo_data(db_session)

    assert summary["items"] == len(DEMO_ITEMS)
    assert summary["security_controls"] == len(DEMO_CONTROLS)
    assert summary["sub_controls"] == sum(len(c["sub_controls"]) for c in DEMO_CONTROLS)
    assert summary["control_implementations"] == db_session.query(ControlImplementation).count()
    assert summary["sub_control_implementations"] == db_session.query(SubControlImplementation).count()


def test_seed_skips_when_controls_exist(db_session):
    seed_demo_data(db_session)

    assert seed_demo_data(db_session) == {}
    assert db_session.query(SecurityControl).count() == len(DEMO_CONTROLS)


def test_seed_force_reseeds(db_session):
    seed_demo_data(db_session)

    summary = seed_demo_data(db_session, force=True)

    assert summary["security_controls"] == len(DEMO_CONTROLS)
    assert db_session.query(SecurityControl).count() == len(DEMO_CONTROLS)


def test_seeded_green_parents_are_consistent(db_session):
    seed_demo_data(db_session)
    service = ImplementationService(db_session)

    green_rows = db_session.query(ControlImplementation).filter_by(status=ControlStatus.GREEN).all()
    assert green_rows
    for row in green_rows:
        statuses = service.sub_control_statuses(row.item_id, row.control_id).values()
        assert is_green_eligible(statuses)


def test_seeded_matrix_is_served(client, db_session):
    seed_demo_data(db_session)

    data = client.get("/api/matrix").json()

    assert len(data["environments"]) == len(DEMO_ITEMS)
    assert [c["name"] for c in data["controls"]] == [c["name"] for c in DEMO_CONTROLS]
