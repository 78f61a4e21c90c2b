"""Operator CLI for inspecting conversations, documents and feedback."""
from __future__ import annotations

import argparse
import json
import sys
from typing import List, Optional, Sequence

from api.dependencies import Providers
from config import Settings, TavusConfig, settings as default_settings
from services.document_poller import DocumentStatusPoller
from tavus_gateway import TavusClient, TavusDocument, extract_events


def _client(settings: Settings) -> TavusClient:
    return TavusClient(TavusConfig.from_settings(settings))


def list_conversations(settings: Settings, *, limit: int = 20) -> None:
    with _client(settings) as tavus:
        data = tavus.list_conversations()
    items = data.get("data") if isinstance(data, dict) else data
    for item in (items or [])[:limit]:
        print(
            f"[{item.get('created_at', '-')}] {item.get('conversation_id')} "
            f"status={item.get('status', '-')} name={item.get('conversation_name', '-')}"
        )


def print_documents(documents: Sequence[TavusDocument]) -> None:
    for document in documents:
        tags = ",".join(document.tags) or "-"
        print(f"{document.document_id} status={document.status} name={document.document_name} tags={tags}")


def list_documents(settings: Settings, *, tag: Optional[str] = None) -> None:
    with _client(settings) as tavus:
        print_documents(tavus.list_documents(tag=tag))


def show_transcript(settings: Settings, conversation_id: str) -> None:
    with _client(settings) as tavus:
        data = tavus.get_conversation(conversation_id, verbose=True)
    extracted = extract_events(data.get("events"))
    for message in extracted.display_transcript:
        print(f"{message.role}: {message.content}")
    if extracted.shutdown_reason:
        print(f"-- ended: {extracted.shutdown_reason.replace('_', ' ')}")
    if extracted.perception_analysis is not None:
        print(json.dumps(extracted.perception_analysis, indent=2))


def print_feedback(settings: Settings, conversation_id: str) -> None:
    providers = Providers(settings)
    with providers.tavus() as tavus:
        result = providers.feedback_synthesizer(tavus).generate(conversation_id)
    print(result.feedback)


def watch_documents(settings: Settings, *, tag: Optional[str] = None) -> None:
    tavus = _client(settings)

    def _show(documents: List[TavusDocument]) -> None:
        print_documents(documents)
        print("--")

    poller = DocumentStatusPoller(
        lambda: tavus.list_documents(tag=tag),
        _show,
        interval_s=settings.DOCUMENT_POLL_INTERVAL_S,
        stop_when_settled=True,
    )
    try:
        poller.start()
        while poller.running:
            poller.join(settings.DOCUMENT_POLL_INTERVAL_S)
    except KeyboardInterrupt:
        pass
    finally:
        poller.stop()
        tavus.close()


def main(argv: Optional[Sequence[str]] = None, *, settings: Settings = default_settings) -> int:
    parser = argparse.ArgumentParser(description="Inspect mock interview provider state")
    parser.add_argument("--conversations", type=int, metavar="N", help="Show the latest N conversations")
    parser.add_argument("--documents", action="store_true", help="List knowledge-base documents")
    parser.add_argument("--tag", help="Only show documents carrying this tag")
    parser.add_argument("--watch", action="store_true", help="Poll documents until none is processing")
    parser.add_argument("--transcript", metavar="CONVERSATION_ID", help="Print a conversation transcript")
    parser.add_argument("--feedback", metavar="CONVERSATION_ID", help="Generate feedback for a conversation")
    args = parser.parse_args(argv)

    if not any((args.conversations, args.documents, args.watch, args.transcript, args.feedback)):
        parser.print_help(sys.stderr)
        return 2
    if args.conversations:
        list_conversations(settings, limit=args.conversations)
    if args.documents and not args.watch:
        list_documents(settings, tag=args.tag)
    if args.watch:
        watch_documents(settings, tag=args.tag)
    if args.transcript:
        show_transcript(settings, args.transcript)
    if args.feedback:
        print_feedback(settings, args.feedback)
    return 0


if __name__ == "__main__":
    sys.exit(main())
