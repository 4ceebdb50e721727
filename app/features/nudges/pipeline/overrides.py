"""Merge of sparse per-thread overrides onto a base thread."""

from app.features.nudges.domain.models import Thread, ThreadOverride

# Override fields that map one-to-one onto Thread fields.
# thread_cooldown_end has no Thread counterpart and is read from the override directly.
MERGEABLE_FIELDS = (
    "followup_already_sent",
    "nudged_already",
    "ignored_nudges_count",
    "suppress_thread",
    "override_fit",
)


def merge_thread(thread: Thread, override: ThreadOverride | None) -> Thread:
    """Return the thread as seen through its override. The base thread is untouched."""
    if override is None:
        return thread

    updates = {}
    for field_name in MERGEABLE_FIELDS:
        value = getattr(override, field_name)
        if value is not None:
            updates[field_name] = value

    if not updates:
        return thread
    return thread.model_copy(update=updates)
