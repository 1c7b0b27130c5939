"""Redis Pub/Sub channel constants.

All channel names follow the convention: ch:<domain>:<event_type>
"""


class Channels:
    """Redis Pub/Sub channel name constants."""

    # Role hooks, facility, planner → dashboards
    # Payload: {room, kind, message, agent, tick}
    NOTICES = "ch:colony:notice"

    # Logistics planner → dashboards
    # Payload: {room, task_id, action, resource_type, amount, completed_amount, tick}
    LOGISTICS = "ch:logistics:task"

    # Production facility → dashboards
    # Payload: {room, structure_id, from_state, to_state, target, produced, tick}
    FACILITY = "ch:production:facility"

    # Core Engine → telemetry consumers
    # Payload: {tick, snapshot_keys}
    TELEMETRY = "ch:telemetry"
