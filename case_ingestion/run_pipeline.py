#!/usr/bin/env python3
"""
Main runner for the Case Ingestion Pipeline
Ingest a directory of text documents into one case.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .case_assembler import CaseIngestor
from .config import PipelineConfig
from .db_inserter import DatabaseCaseStore, InMemoryCaseStore, PersistenceError
from .models import ProcedureType, SourceDocument, to_record

logger = logging.getLogger(__name__)


def load_documents(docs_dir: Path) -> List[SourceDocument]:
    """Read every ``*.txt`` file; the file stem is the document id."""
    documents = []
    for path in sorted(docs_dir.glob("*.txt")):
        documents.append(SourceDocument(
            id=path.stem,
            title=path.stem.replace("_", " "),
            content=path.read_text(encoding="utf-8"),
        ))
    return documents


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Case Ingestion Pipeline - Build a case file from legal documents'
    )
    parser.add_argument('--docs-dir', required=True, help='Directory containing .txt documents')
    parser.add_argument('--case-id', required=True, help='Case identifier')
    parser.add_argument('--title', required=True, help='Case title')
    parser.add_argument('--workspace-id', default='default', help='Workspace identifier (default: default)')
    parser.add_argument('--tag', action='append', default=[], help='Case tag (repeatable)')
    parser.add_argument('--external-ref', default=None, help='External file number')
    parser.add_argument(
        '--skip-deadlines',
        action='store_true',
        help='Skip deadline extraction'
    )
    parser.add_argument(
        '--procedure-type',
        choices=[p.value for p in ProcedureType if p != ProcedureType.UNKNOWN],
        default=None,
        help='Force a procedure family instead of detecting it'
    )
    parser.add_argument(
        '--database-url',
        default=None,
        help='Database URL (default: DATABASE_URL from env, otherwise in-memory)'
    )
    parser.add_argument('--json', action='store_true', help='Print the full result as JSON')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable verbose logging')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    config = PipelineConfig.from_env()
    if args.database_url:
        config.database_url = args.database_url
    if args.skip_deadlines:
        config.skip_deadline_extraction = True
    config.validate()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else config.log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )

    docs_dir = Path(args.docs_dir)
    if not docs_dir.is_dir():
        logger.error(f"Documents directory not found: {docs_dir}")
        return 1

    documents = load_documents(docs_dir)
    if not documents:
        logger.warning(f"No .txt documents in {docs_dir}")

    if config.database_url:
        store = DatabaseCaseStore.from_url(config.database_url)
    else:
        store = InMemoryCaseStore()
        logger.info("No DATABASE_URL configured, using in-memory store")

    ingestor = CaseIngestor(store=store, config=config)
    try:
        result = ingestor.ingest_case_from_documents_sync(
            args.case_id,
            args.workspace_id,
            args.title,
            documents,
            tags=args.tag,
            external_ref=args.external_ref,
            procedure_type=ProcedureType(args.procedure_type) if args.procedure_type else None,
        )
    except PersistenceError as e:
        logger.error(f"Persistence failed: {e}")
        return 2

    if args.json:
        print(json.dumps(to_record(result), ensure_ascii=False, indent=2))
    else:
        print(result.case_file.summary)
        for actor in result.actors:
            print(f"  {actor.role.value:<18} {actor.name} ({actor.confidence:.2f})")
        for deadline in result.deadlines:
            print(f"  Frist {deadline.due_at}  {deadline.title}")
        for issue in result.issues:
            print(f"  [{issue.priority.value}] {issue.title}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
