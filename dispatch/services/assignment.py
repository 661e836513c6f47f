"""
Doctor assignment strategies.

Pure functions over a roster snapshot. They return decisions; callers apply
them (see apply_assignment). An empty roster yields None instead of raising.
"""

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from dispatch.cache import memoize
from dispatch.models import (
    Assignment,
    Doctor,
    DoctorLoad,
    DoctorMatch,
    Ticket,
    TicketStatus,
    tokenize,
)
from dispatch.observability.metrics import observe_assignment

logger = logging.getLogger(__name__)

Tickets = Union[Mapping[str, Ticket], Iterable[Ticket]]


def _ticket_values(tickets: Tickets) -> Iterable[Ticket]:
    """Accept either an id -> ticket mapping or a plain iterable."""
    if isinstance(tickets, Mapping):
        return tickets.values()
    return tickets


def round_robin_assignment(
    tickets: Sequence[Ticket],
    doctors: Sequence[Doctor]
) -> Optional[List[Assignment]]:
    """
    Hand tickets to doctors cyclically in roster order.

    The cursor starts at the first doctor on every call.

    Returns:
        One assignment per ticket, or None if the roster is empty
    """
    if not doctors:
        logger.warning("Round robin requested with an empty roster")
        return None

    assignments = [
        Assignment(
            ticket_id=ticket.id,
            doctor_id=doctors[index % len(doctors)].id,
            strategy="round_robin"
        )
        for index, ticket in enumerate(tickets)
    ]
    observe_assignment("round_robin", len(assignments))
    return assignments


def least_load_assignment(
    ticket: Ticket,
    doctors: Sequence[Doctor],
    current_loads: Mapping[str, int]
) -> Optional[Doctor]:
    """
    Pick the doctor with the strictly smallest current load.

    Doctors missing from current_loads count as idle. The first doctor in
    roster order wins ties.

    Returns:
        The selected doctor, or None if the roster is empty
    """
    selected: Optional[Doctor] = None
    min_load = float('inf')

    for doctor in doctors:
        load = current_loads.get(doctor.id, 0)
        if load < min_load:
            min_load = load
            selected = doctor

    if selected is None:
        logger.warning(f"No doctor available for ticket {ticket.id}")
        return None

    logger.debug(f"Ticket {ticket.id} -> doctor {selected.id} (load={min_load})")
    observe_assignment("least_load")
    return selected


@memoize()
def _specialty_terms(specialties: str) -> Tuple[str, ...]:
    return tuple(tokenize(specialties))


def specialty_similarity(symptom_terms: Sequence[str], specialty_terms: Sequence[str]) -> float:
    """
    Share of symptom terms found among the specialty terms.

    Normalized by the longer of the two term lists; 0.0 when both are empty.
    Repeated symptom terms count once per occurrence.
    """
    denominator = max(len(symptom_terms), len(specialty_terms))
    if denominator == 0:
        return 0.0
    specialty_set = set(specialty_terms)
    common = sum(1 for term in symptom_terms if term in specialty_set)
    return common / denominator


def knn_recommendation(
    symptoms: str,
    doctors: Sequence[Doctor],
    k: int = 3
) -> Optional[List[DoctorMatch]]:
    """
    Recommend up to k doctors whose specialties best match the symptoms.

    Args:
        symptoms: Free text, split on whitespace and commas
        doctors: Roster snapshot
        k: Maximum number of recommendations

    Returns:
        Matches with similarity > 0, best first (ties keep roster order),
        or None if the roster is empty

    Raises:
        ValueError: If k is negative
    """
    if k < 0:
        raise ValueError("k cannot be negative")
    if not doctors:
        return None

    symptom_terms = tokenize(symptoms)
    matches = [
        DoctorMatch(
            doctor=doctor,
            similarity=specialty_similarity(symptom_terms, _specialty_terms(doctor.specialties))
        )
        for doctor in doctors
    ]
    # stable sort: equal scores stay in roster order
    matches.sort(key=lambda m: m.similarity, reverse=True)
    top = [m for m in matches[:k] if m.similarity > 0]

    logger.debug(
        f"KNN for {symptom_terms}: {[(m.doctor.id, round(m.similarity, 2)) for m in top]}"
    )
    if top:
        observe_assignment("knn")
    return top


def optimize_doctor_schedule(tickets: Tickets, doctors: Sequence[Doctor]) -> List[DoctorLoad]:
    """
    Rank doctors by their count of open or booked tickets, lightest first.

    Completed tickets and tickets without a doctor are ignored. Used to
    suggest rebalancing; nothing is reassigned here.

    Returns:
        DoctorLoad entries in ascending load order (ties keep roster order)
    """
    doctor_load: Dict[str, int] = {doctor.id: 0 for doctor in doctors}

    for ticket in _ticket_values(tickets):
        if ticket.doctor_assigned and ticket.status != TicketStatus.COMPLETED:
            doctor_load[ticket.doctor_assigned] = doctor_load.get(ticket.doctor_assigned, 0) + 1

    ranking = [DoctorLoad(doctor=doctor, load=doctor_load[doctor.id]) for doctor in doctors]
    ranking.sort(key=lambda entry: entry.load)
    return ranking


def apply_assignment(ticket: Ticket, assignment: Assignment) -> Ticket:
    """
    Return a copy of ticket booked with the assigned doctor.

    Raises:
        ValueError: If the assignment is for another ticket
        InvalidStatusTransitionError: If the ticket is already completed
    """
    if assignment.ticket_id != ticket.id:
        raise ValueError(
            f"Assignment for ticket {assignment.ticket_id} applied to ticket {ticket.id}"
        )
    return ticket.transition_to(TicketStatus.BOOKED, doctor_assigned=assignment.doctor_id)
