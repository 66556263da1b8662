"""
Client Rows Calculator

Summarizes each client's package purchase / usage / remaining counts and
this week's class count for the weekly dashboard.
"""

from ..models import Client, WeeklyClientRow, WeeklyContext


class ClientRowsCalculator:
    """Builds one display row per client on the trainer's roster."""

    MAX_DISPLAYED_PACKAGES = 2

    def calculate(self, ctx: WeeklyContext) -> list[WeeklyClientRow]:
        return [self._build_row(ctx, client) for client in ctx.roster]

    def _build_row(self, ctx: WeeklyContext, client: Client) -> WeeklyClientRow:
        # sorted() is stable, so insertion order breaks start-date ties
        client_packages = sorted(
            (p for p in ctx.packages if p.client_id == client.id),
            key=lambda p: p.start_date,
        )
        client_sessions = [s for s in ctx.all_sessions if s.client_id == client.id]
        week_count = sum(1 for s in ctx.weekly_sessions if s.client_id == client.id)

        stats = []
        for package in client_packages:
            used = sum(1 for s in client_sessions if s.package_id == package.id)
            stats.append((package, used, package.sessions_purchased - used))

        # Active packages: show the latest two (old + new).
        # No active package: show only the latest one.
        active = [entry for entry in stats if entry[2] > 0]
        if active:
            shown = active[-self.MAX_DISPLAYED_PACKAGES:]
        elif stats:
            shown = stats[-1:]
        else:
            shown = []

        row = WeeklyClientRow(client_id=client.id, client_name=client.name, week_count=week_count)

        if shown:
            row.package_display = " + ".join(str(package.sessions_purchased) for package, _, _ in shown)
            row.used_display = " + ".join(str(used) for _, used, _ in shown)
            row.remaining_display = " + ".join(str(remaining) for _, _, remaining in shown)
            row.total_remaining = sum(remaining for _, _, remaining in shown)
        elif client_sessions:
            # Never bought a package: drop-ins are an unpaid balance
            lifetime = len(client_sessions)
            row.used_display = str(lifetime)
            row.remaining_display = str(-lifetime)
            row.total_remaining = -lifetime

        return row
