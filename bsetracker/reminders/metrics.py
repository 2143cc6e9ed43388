from prometheus_client import Counter


reminders_scheduled_total = Counter(
    "bse_reminders_scheduled_total",
    "Total pending reminders written by the scheduler",
)

scheduler_scans_total = Counter(
    "bse_reminder_dispatch_passes_total",
    "Total dispatch passes",
)

reminders_dispatch_success_total = Counter(
    "bse_reminders_dispatch_success_total",
    "Total reminder emails sent",
)

reminders_dispatch_failed_total = Counter(
    "bse_reminders_dispatch_failed_total",
    "Total reminder emails that failed to send",
)

reminders_dispatch_skipped_total = Counter(
    "bse_reminders_dispatch_skipped_total",
    "Total due reminders skipped during dispatch",
    ["reason"],
)
