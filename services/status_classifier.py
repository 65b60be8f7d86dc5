"""Classify a route into its display state for a given day."""
from datetime import date
from typing import Iterable, Optional

from loguru import logger

from configurations.config import Config
from models.route_models import (
    CollectionOutcome,
    OutcomeStatus,
    Route,
    RouteState,
    RouteStatusLabel,
)

OUTCOME_STATES = {
    OutcomeStatus.COLLECTED: RouteState.DONE,
    OutcomeStatus.SKIPPED: RouteState.SKIPPED,
    # missed is painted like skipped; the outcome record itself keeps MISSED
    OutcomeStatus.MISSED: RouteState.SKIPPED,
    OutcomeStatus.PENDING: RouteState.IN_PROGRESS,
}


def status_label(state: RouteState) -> RouteStatusLabel:
    return RouteStatusLabel(state=state, color=Config.STATUS_COLORS[state.value])


def find_outcome(route: Route, outcomes: Iterable[CollectionOutcome],
                 on_date: date) -> Optional[CollectionOutcome]:
    """Outcome recorded for this route, date, primary street and primary barangay."""
    street = route.primary_street
    barangay = route.primary_barangay
    for outcome in outcomes:
        if (outcome.route_id == route.id
                and outcome.date == on_date
                and outcome.street_label == street
                and outcome.barangay_label == barangay):
            return outcome
    return None


def classify_route_status(route: Route, outcomes: Iterable[CollectionOutcome],
                          today: Optional[date] = None) -> RouteStatusLabel:
    """
    Display state of a route for today.

    A recorded outcome decides the state (done, skipped, in-progress).
    Without one the route is "today" when today's weekday is in its
    schedule, otherwise "scheduled".
    """
    today = today or date.today()
    outcome = find_outcome(route, outcomes, today)
    if outcome is not None:
        return status_label(OUTCOME_STATES.get(outcome.status, RouteState.IN_PROGRESS))
    if route.is_scheduled_on(today):
        return status_label(RouteState.TODAY)
    return status_label(RouteState.SCHEDULED)


def classify_route_status_on(route: Route, outcomes: Iterable[CollectionOutcome],
                             on_date: date, today: Optional[date] = None) -> RouteStatusLabel:
    """
    Display state of a route on an arbitrary calendar day.

    A past collection day with no recorded outcome counts as skipped. Any
    other day without an outcome is scheduled.
    """
    today = today or date.today()
    if on_date == today:
        return classify_route_status(route, outcomes, today)

    outcome = find_outcome(route, outcomes, on_date)
    if outcome is not None:
        return status_label(OUTCOME_STATES.get(outcome.status, RouteState.IN_PROGRESS))
    if on_date < today and route.is_scheduled_on(on_date):
        logger.debug(f"Route {route.id}: no outcome recorded for {on_date}, painting skipped")
        return status_label(RouteState.SKIPPED)
    return status_label(RouteState.SCHEDULED)
