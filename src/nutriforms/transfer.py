"""Bulk template export/import — ``nutriforms-templates``.

Batch utility for moving template definitions between environments.
Export writes every template as a JSON array; import upserts each item by
``slug``.  Generated ids are never carried across: an imported item's
``id`` is dropped and the target database keeps (or generates) its own.
Responses are never exported.

Examples::

    # Dump all templates to a file
    uv run nutriforms-templates export --out templates.json

    # Load them into another database
    uv run nutriforms-templates import templates.json
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from nutriforms_db.repository import TemplateRepository

from nutriforms.errors import storage_errors
from nutriforms.models.identity import Caller, Role, require_admin
from nutriforms.models.schema import FormSchema

logger = logging.getLogger(__name__)

# Identity used by the command-line tool
SYSTEM_CALLER = Caller(user_id="system:nutriforms-templates", role=Role.ADMIN)

_repo = TemplateRepository()


class TemplateDocument(BaseModel):
    """One template as it travels in an export file.

    Unknown keys (``id``, ``updated_at``, ...) are ignored on import.
    """

    model_config = ConfigDict(extra="ignore")

    slug: str
    title: str
    description: str | None = None
    form_schema: FormSchema = Field(alias="schema_json")
    is_active: bool = False
    order_index: int = 0
    created_at: datetime | None = None


class ImportReport(BaseModel):
    """Outcome of a bulk import; failed items do not stop the batch."""

    imported: int = 0
    total: int = 0
    # Item index (or slug when known) -> reason
    errors: dict[str, str] = {}


async def export_templates(db: AsyncSession, caller: Caller) -> list[dict[str, Any]]:
    """Every template in display order, as JSON-ready dicts."""
    require_admin(caller, "export templates")
    with storage_errors("export_templates"):
        rows = await _repo.list_templates(db)

    items = []
    for row in rows:
        doc = {
            "id": str(row.id),
            "slug": row.slug,
            "title": row.title,
            "description": row.description,
            "schema_json": row.schema_json,
            "is_active": row.is_active,
            "order_index": row.order_index,
            "created_at": row.created_at.isoformat() if row.created_at else None,
            "updated_at": row.updated_at.isoformat() if row.updated_at else None,
        }
        items.append(doc)
    logger.info("Exported %d templates", len(items))
    return items


async def import_templates(
    db: AsyncSession, caller: Caller, items: Iterable[Any]
) -> ImportReport:
    """Upsert each item by slug.

    Items that fail schema validation are reported and skipped; a storage
    failure aborts the whole batch (``PersistenceError``).
    """
    require_admin(caller, "import templates")
    report = ImportReport()

    for idx, item in enumerate(items):
        report.total += 1
        ref = item.get("slug", f"#{idx}") if isinstance(item, dict) else f"#{idx}"
        try:
            doc = TemplateDocument.model_validate(item)
        except ValidationError as exc:
            first = exc.errors()[0]
            loc = ".".join(str(p) for p in first["loc"])
            report.errors[str(ref)] = f"{loc}: {first['msg']}" if loc else first["msg"]
            logger.warning("Skipping template %s: %s", ref, report.errors[str(ref)])
            continue

        values = doc.model_dump(exclude={"form_schema"})
        values["schema_json"] = doc.form_schema.to_document()
        with storage_errors("import_templates"):
            await _repo.upsert_by_slug(db, values)
        report.imported += 1

    logger.info("Imported %d/%d templates", report.imported, report.total)
    return report


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

async def _run(args: argparse.Namespace) -> int:
    # Lazy imports to avoid loading DB machinery at module import time
    from nutriforms_db.engine import dispose_engine, session_scope

    try:
        async with session_scope() as db:
            if args.command == "export":
                items = await export_templates(db, SYSTEM_CALLER)
                payload = json.dumps(items, ensure_ascii=False, indent=2)
                if args.out:
                    Path(args.out).write_text(payload + "\n", encoding="utf-8")
                else:
                    print(payload)
                return 0

            items = json.loads(Path(args.file).read_text(encoding="utf-8"))
            if not isinstance(items, list):
                logger.error("%s: expected a JSON array of templates", args.file)
                return 2
            report = await import_templates(db, SYSTEM_CALLER, items)
            for ref, reason in report.errors.items():
                print(f"  {ref}: {reason}", file=sys.stderr)
            print(f"Imported templates: {report.imported}/{report.total}")
            return 1 if report.errors else 0
    finally:
        await dispose_engine()


def cli() -> None:
    """Console-script entry point: ``nutriforms-templates``."""
    parser = argparse.ArgumentParser(
        prog="nutriforms-templates",
        description="Export or import form/test templates.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: INFO)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    export = sub.add_parser("export", help="Write all templates as a JSON array")
    export.add_argument("--out", default=None, help="Output file (default: stdout)")

    load = sub.add_parser("import", help="Upsert templates from a JSON array by slug")
    load.add_argument("file", help="JSON file produced by 'export'")

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    sys.exit(asyncio.run(_run(args)))
