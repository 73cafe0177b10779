# cm_core/decision_tables/management/commands/import_decision_table.py
from pathlib import Path

from django.core.management.base import BaseCommand, CommandError
from rest_framework.exceptions import ValidationError

from cm_core.decision_tables.csv_import import decode_csv_bytes, import_csv, validate_csv


class Command(BaseCommand):
    help = "Validate and import a decision-table CSV (';'-separated spreadsheet export)."

    def add_arguments(self, parser):
        parser.add_argument("path", help="CSV file to import")
        parser.add_argument("--name", help="Table name (defaults to the file name)")
        parser.add_argument("--description", default="")
        parser.add_argument("--default", action="store_true", help="Make the imported table the default")
        parser.add_argument("--validate-only", action="store_true", help="Report issues without importing")
        parser.add_argument("--strict", action="store_true", help="Refuse to import when validation reports issues")

    def handle(self, *args, **options):
        path = Path(options["path"])
        if not path.is_file():
            raise CommandError(f"File not found: {path}")

        content = decode_csv_bytes(path.read_bytes())

        issues = validate_csv(content)
        for issue in issues:
            self.stderr.write(self.style.WARNING(issue))

        if options["validate_only"]:
            if not issues:
                self.stdout.write(self.style.SUCCESS("CSV looks valid."))
            return

        if issues and options["strict"]:
            raise CommandError("Validation reported issues; nothing imported.")

        try:
            table = import_csv(
                content,
                name=options["name"] or path.stem,
                description=options["description"],
                file_name=path.name,
                set_default=options["default"],
            )
        except ValidationError as e:
            raise CommandError(f"Import failed: {e.detail}")

        self.stdout.write(
            self.style.SUCCESS(
                f"Imported table id={table.id} name={table.name!r} entries={table.entries.count()} default={table.is_default}"
            )
        )
