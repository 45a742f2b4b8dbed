"""DayBook core library: daily records, their rules and their persistence.

Public API re-exports for convenient imports:
    from daybook import DaySession, open_persistence, add_task, seal_record, ...
"""

# Workspace & settings
from daybook.workspace import (
    workspace_root,
    settings_path,
    load_settings,
    save_settings,
    get_user_timezone,
    today_str,
    now_local,
    cache_dir,
    remote_db_path,
)

# File I/O
from daybook.fileio import (
    read_json,
    read_yaml,
    write_json_atomic,
    write_yaml_atomic,
)

# Models
from daybook.models import (
    MOODS,
    PRIORITIES,
    Settings,
    Task,
    JournalEntry,
    DailyRecord,
    SearchQuery,
    Statistics,
    now_iso,
    new_id,
)

# Content validation
from daybook.content import (
    has_markup,
    strip_markup,
    is_valid_content,
    is_well_formed_rich_content,
    normalize_content,
)

# Tasks
from daybook.tasks import (
    find_task,
    add_task,
    remove_task,
    toggle_task,
    reorder_tasks,
    batch_toggle,
)

# Journal
from daybook.journal import (
    find_entry,
    add_entry,
    edit_entry,
    delete_entry,
    sort_by_time_descending,
    update_journal,
    update_mood,
)

# Seal state machine
from daybook.seal import (
    is_mutable,
    seal_record,
    unseal_record,
)

# Derived metrics & migration
from daybook.metrics import (
    MIN_JOURNAL_LENGTH,
    completion_rate,
    update_completion_rate,
    overall_mood,
    record_mood,
    can_seal,
)
from daybook.migration import migrate_legacy_journal

# Persistence
from daybook.cache import CacheError, FileCache, daily_key
from daybook.remote import RemoteStore, RemoteStoreError, SqliteRemoteStore
from daybook.persistence import (
    Persistence,
    prefer_remote_on_read,
    reconcile_children,
    open_persistence,
)

# Session
from daybook.session import DaySession

# Archive analytics
from daybook.analytics import (
    mood_distribution,
    completion_trend,
    cumulative_task_count,
    tag_stats,
    consecutive_days,
    compute_statistics,
    search_records,
    sorted_archive,
)
