"""
End-to-end API tests for the fleet endpoints.

Drives the trip lifecycle through HTTP with the roles that own each
step, and checks the error envelope for each failure kind.
"""

import pytest

from fleetflow.app.domain.fleet.coordinator import FleetCoordinator
from fleetflow.app.domain.fleet.errors import StorageError
from fleetflow.app.models.enums import UserRole


@pytest.fixture
async def staff(headers_for):
    return {
        "admin": await headers_for(UserRole.ADMIN),
        "dispatcher": await headers_for(UserRole.DISPATCHER),
        "safety": await headers_for(UserRole.SAFETY_OFFICER),
        "finance": await headers_for(UserRole.FINANCE_OFFICER),
    }


async def _create_vehicle(client, headers, **overrides):
    payload = {"name": "Truck 1", "license_plate": "KA-01-0001", "max_capacity_kg": 2000, "odometer_km": 500}
    payload.update(overrides)
    response = await client.post("/v1/vehicles", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def _create_driver(client, headers, **overrides):
    payload = {"name": "Ravi", "license_number": "DL-0001", "license_category": "hmv", "license_expiry": "2027-03-01"}
    payload.update(overrides)
    response = await client.post("/v1/drivers", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def _create_trip(client, headers, vehicle_id, driver_id, cargo=800):
    return await client.post("/v1/trips", json={
        "vehicle_id": vehicle_id,
        "driver_id": driver_id,
        "origin": "Bengaluru",
        "destination": "Mysuru",
        "cargo_weight_kg": cargo
    }, headers=headers)


@pytest.mark.asyncio
async def test_trip_lifecycle_end_to_end(client, staff, make_user, bearer_for):
    vehicle = await _create_vehicle(client, staff["admin"])
    driver = await _create_driver(client, staff["safety"])
    assert vehicle["status"] == "AVAILABLE"
    assert driver["license_category"] == "HMV"

    response = await _create_trip(client, staff["dispatcher"], vehicle["id"], driver["id"])
    assert response.status_code == 201
    trip = response.json()
    assert trip["status"] == "DRAFT"

    response = await client.post(f"/v1/trips/{trip['id']}/dispatch", headers=staff["dispatcher"])
    assert response.status_code == 200
    assert response.json()["start_odometer"] == 500

    vehicle_now = (await client.get(f"/v1/vehicles/{vehicle['id']}", headers=staff["dispatcher"])).json()
    assert vehicle_now["status"] == "ON_TRIP"

    driver_user = await make_user(UserRole.DRIVER, driver_id=driver["id"])
    response = await client.post(
        f"/v1/trips/{trip['id']}/complete",
        json={"end_odometer": 650},
        headers=bearer_for(driver_user)
    )
    assert response.status_code == 200
    assert response.json()["status"] == "COMPLETED"

    vehicle_now = (await client.get(f"/v1/vehicles/{vehicle['id']}", headers=staff["admin"])).json()
    driver_now = (await client.get(f"/v1/drivers/{driver['id']}", headers=staff["admin"])).json()
    assert vehicle_now["status"] == "AVAILABLE"
    assert vehicle_now["odometer_km"] == 650
    assert driver_now["status"] == "AVAILABLE"
    assert driver_now["trips_completed"] == 1


@pytest.mark.asyncio
async def test_driver_cannot_complete_someone_elses_trip(client, staff, make_user, bearer_for):
    vehicle = await _create_vehicle(client, staff["admin"])
    driver = await _create_driver(client, staff["safety"])
    other = await _create_driver(client, staff["safety"], license_number="DL-0002")
    trip = (await _create_trip(client, staff["dispatcher"], vehicle["id"], driver["id"])).json()
    await client.post(f"/v1/trips/{trip['id']}/dispatch", headers=staff["dispatcher"])

    other_user = await make_user(UserRole.DRIVER, driver_id=other["id"])
    response = await client.post(f"/v1/trips/{trip['id']}/complete", headers=bearer_for(other_user))
    assert response.status_code == 403
    assert response.json()["error_code"] == "ERR_FORBIDDEN"

    unlinked = await make_user(UserRole.DRIVER)
    response = await client.post(f"/v1/trips/{trip['id']}/complete", headers=bearer_for(unlinked))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_roles_are_enforced(client, staff, headers_for):
    driver_headers = await headers_for(UserRole.DRIVER)

    response = await client.post(
        "/v1/vehicles",
        json={"name": "X", "license_plate": "X-1", "max_capacity_kg": 10},
        headers=staff["dispatcher"]
    )
    assert response.status_code == 403

    vehicle = await _create_vehicle(client, staff["admin"])
    driver = await _create_driver(client, staff["safety"])
    response = await _create_trip(client, driver_headers, vehicle["id"], driver["id"])
    assert response.status_code == 403

    # reads are open to every role
    assert (await client.get("/v1/trips", headers=driver_headers)).status_code == 200


@pytest.mark.asyncio
async def test_error_envelope_per_failure_kind(client, staff):
    vehicle = await _create_vehicle(client, staff["admin"], max_capacity_kg=500)
    driver = await _create_driver(client, staff["safety"])

    response = await _create_trip(client, staff["dispatcher"], vehicle["id"], driver["id"], cargo=501)
    assert response.status_code == 422
    body = response.json()
    assert body["error_code"] == "ERR_UNPROCESSABLE"
    assert body["details"]["max_capacity_kg"] == 500

    response = await _create_trip(client, staff["dispatcher"], vehicle["id"], driver["id"], cargo=-5)
    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_VALIDATION"

    response = await client.post("/v1/trips/9999/dispatch", headers=staff["dispatcher"])
    assert response.status_code == 404
    assert response.json()["error_code"] == "ERR_NOT_FOUND"

    response = await client.patch(
        f"/v1/vehicles/{vehicle['id']}/status", json={"status": "ON_TRIP"}, headers=staff["admin"]
    )
    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_BAD_REQUEST"

    trip = (await _create_trip(client, staff["dispatcher"], vehicle["id"], driver["id"], cargo=100)).json()
    await client.post(f"/v1/trips/{trip['id']}/cancel", headers=staff["dispatcher"])
    response = await client.post(f"/v1/trips/{trip['id']}/dispatch", headers=staff["dispatcher"])
    assert response.status_code == 409
    assert response.json()["error_code"] == "ERR_CONFLICT"
    assert response.json()["details"]["status"] == "CANCELLED"


@pytest.mark.asyncio
async def test_storage_failure_is_retryable(client, staff, mocker):
    mocker.patch.object(FleetCoordinator, "dispatch_trip", side_effect=StorageError("connection lost"))

    response = await client.post("/v1/trips/1/dispatch", headers=staff["dispatcher"])

    assert response.status_code == 503
    assert response.headers["Retry-After"] == "1"
    assert response.json()["error_code"] == "ERR_STORAGE_UNAVAILABLE"


@pytest.mark.asyncio
async def test_maintenance_endpoints(client, staff):
    vehicle = await _create_vehicle(client, staff["admin"])

    response = await client.post(
        "/v1/maintenance",
        json={"vehicle_id": vehicle["id"], "description": "brake pads", "cost": 250},
        headers=staff["admin"]
    )
    assert response.status_code == 201
    first = response.json()
    second = (await client.post(
        "/v1/maintenance",
        json={"vehicle_id": vehicle["id"], "description": "wipers", "cost": 20},
        headers=staff["admin"]
    )).json()

    response = await client.get(f"/v1/maintenance?vehicle_id={vehicle['id']}&resolved=false", headers=staff["dispatcher"])
    assert response.json()["total"] == 2

    response = await client.post(f"/v1/maintenance/{first['id']}/resolve", headers=staff["admin"])
    assert response.status_code == 200
    assert response.json()["log"]["is_resolved"] is True
    assert response.json()["vehicle"]["status"] == "IN_SHOP"

    response = await client.post(f"/v1/maintenance/release/{vehicle['id']}", headers=staff["admin"])
    assert response.status_code == 200
    assert response.json()["resolved_logs"] == 1
    assert response.json()["vehicle"]["status"] == "AVAILABLE"

    response = await client.post(f"/v1/maintenance/{second['id']}/resolve", headers=staff["admin"])
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_fuel_endpoints(client, staff):
    vehicle = await _create_vehicle(client, staff["admin"])

    response = await client.post(
        "/v1/fuel",
        json={"vehicle_id": vehicle["id"], "liters": 50, "cost_per_liter": 1.2},
        headers=staff["finance"]
    )
    assert response.status_code == 201
    fuel_log = response.json()
    assert fuel_log["total_cost"] == 60.0

    response = await client.delete(f"/v1/fuel/{fuel_log['id']}", headers=staff["dispatcher"])
    assert response.status_code == 403

    response = await client.delete(f"/v1/fuel/{fuel_log['id']}", headers=staff["finance"])
    assert response.status_code == 204
    assert (await client.get("/v1/fuel", headers=staff["finance"])).json()["total"] == 0


@pytest.mark.asyncio
async def test_delete_driver_endpoint(client, staff):
    driver = await _create_driver(client, staff["safety"])

    response = await client.delete(f"/v1/drivers/{driver['id']}", headers=staff["safety"])
    assert response.status_code == 403

    response = await client.delete(f"/v1/drivers/{driver['id']}", headers=staff["admin"])
    assert response.status_code == 204
    assert (await client.get(f"/v1/drivers/{driver['id']}", headers=staff["admin"])).status_code == 404


@pytest.mark.asyncio
async def test_delete_vehicle_with_trip_history_conflicts(client, staff):
    vehicle = await _create_vehicle(client, staff["admin"])
    driver = await _create_driver(client, staff["safety"])
    trip = (await _create_trip(client, staff["dispatcher"], vehicle["id"], driver["id"])).json()
    await client.post(f"/v1/trips/{trip['id']}/cancel", headers=staff["dispatcher"])

    response = await client.delete(f"/v1/vehicles/{vehicle['id']}", headers=staff["admin"])
    assert response.status_code == 409
    assert response.json()["error_code"] == "ERR_CONFLICT"
    assert response.json()["details"]["trips"] == 1

    response = await client.delete(f"/v1/drivers/{driver['id']}", headers=staff["admin"])
    assert response.status_code == 409

    response = await client.get(f"/v1/trips/{trip['id']}", headers=staff["admin"])
    assert response.status_code == 200
    assert response.json()["status"] == "CANCELLED"


@pytest.mark.asyncio
async def test_null_for_required_column_is_a_validation_error(client, staff):
    vehicle = await _create_vehicle(client, staff["admin"], model="Tata Ace")
    driver = await _create_driver(client, staff["safety"])

    for payload in ({"name": None}, {"max_capacity_kg": None}):
        response = await client.patch(f"/v1/vehicles/{vehicle['id']}", json=payload, headers=staff["admin"])
        assert response.status_code == 422
        assert response.json()["error_code"] == "ERR_VALIDATION"

    # nullable columns can still be cleared
    response = await client.patch(f"/v1/vehicles/{vehicle['id']}", json={"model": None}, headers=staff["admin"])
    assert response.status_code == 200
    assert response.json()["model"] is None
    assert response.json()["name"] == "Truck 1"

    response = await client.patch(
        f"/v1/drivers/{driver['id']}", json={"license_expiry": None}, headers=staff["safety"]
    )
    assert response.status_code == 422

    log = (await client.post(
        "/v1/maintenance",
        json={"vehicle_id": vehicle["id"], "description": "oil change", "cost": 40},
        headers=staff["admin"]
    )).json()
    response = await client.patch(f"/v1/maintenance/{log['id']}", json={"cost": None}, headers=staff["admin"])
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_health_reports_correlation_id(client):
    response = await client.get("/health", headers={"X-Correlation-ID": "abc-123"})

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.headers["X-Correlation-ID"] == "abc-123"
