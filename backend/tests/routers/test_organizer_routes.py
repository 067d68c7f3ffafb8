from fastapi.routing import APIRoute
from slotbook.deps import get_current_organizer
from slotbook.routers import bookings, devices, events


def test_admin_routers_require_organizer_token() -> None:
    for module in (events, devices):
        assert any(dep.dependency == get_current_organizer for dep in module.router.dependencies)
        for route in module.router.routes:
            if not isinstance(route, APIRoute):
                continue
            assert any(dep.call == get_current_organizer for dep in route.dependant.dependencies)


def _requires_organizer(route: APIRoute) -> bool:
    return any(dep.call == get_current_organizer for dep in route.dependant.dependencies)


def test_visitor_routes_stay_public() -> None:
    routes = {(route.path, tuple(sorted(route.methods))): route for route in bookings.router.routes if isinstance(route, APIRoute)}

    assert not _requires_organizer(routes[("/events/{event_id}/availability", ("GET",))])
    assert not _requires_organizer(routes[("/events/{event_id}/reservations", ("POST",))])
    assert _requires_organizer(routes[("/events/{event_id}/bookings", ("GET",))])
    assert _requires_organizer(routes[("/bookings/{booking_id}", ("DELETE",))])
