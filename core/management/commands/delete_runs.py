"""Delete stored runs."""

from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError

from core.services import clear_all, remove_run
from gamedata.models import Player


class Command(BaseCommand):
    """Remove one run by id, or every run of a player."""

    help = "Delete one stored run (--id) or all of a player's runs (--all)."

    def add_arguments(self, parser) -> None:
        """Add command arguments."""

        parser.add_argument("--player", default="default", help="Player name (default: default).")
        parser.add_argument("--id", dest="run_id", default=None, help="Run id to delete.")
        parser.add_argument("--all", action="store_true", help="Delete every run.")

    def handle(self, *args, **options) -> str | None:
        """Run the command."""

        run_id: str | None = options["run_id"]
        delete_all: bool = options["all"]
        if bool(run_id) == delete_all:
            raise CommandError("Pass exactly one of --id or --all.")

        player = Player.objects.filter(name=options["player"]).first()
        if player is None:
            raise CommandError(f"Unknown player: {options['player']!r}")

        if delete_all:
            removed = clear_all(player)
        else:
            if not remove_run(player, run_id):
                raise CommandError(f"No run with id {run_id!r}.")
            removed = 1
        self.stdout.write(f"[DELETE] player={player.name} removed={removed}")
        return None
