from src.service.commerce.domain.entity.sellable_unit_entity import SeatingMode


def build_seat_labels(
    *,
    seating_mode: SeatingMode,
    ticket_type_name: str,
    open_seating_label: str,
    issued_before: int,
    quantity: int,
) -> list[str]:
    """
    Sequential labels scoped to one ticket type.

    `issued_before` is the ticket type's issued counter before this batch was
    reserved, so labels continue from issued_before + 1.
    """
    match seating_mode:
        case SeatingMode.ASSIGNED:
            prefix = ticket_type_name
        case SeatingMode.OPEN:
            prefix = open_seating_label
    return [f'{prefix}-{issued_before + n}' for n in range(1, quantity + 1)]
