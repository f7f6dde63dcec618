"""
Interactive retrieval over a directory of documents.

Usage:
    ranking-proximity [--html] [--stem] [--feedback [--rated]] [--cosine-only] DIR

At the query prompt enter a query (empty input exits). After results are shown:
    m         show the next page of results
    N         show document number N (and, with --feedback, judge it)
    r         rerun with the query reformulated from the feedback given so far
    <empty>   back to the query prompt
"""

from __future__ import annotations

import argparse
import logging
import os
from collections.abc import Callable

from ranking_proximity.config import (
    DOC_TYPE_HTML,
    DOC_TYPE_TEXT,
    ENV_PREFIX,
    PROXIMITY_STRATEGIES,
    FeedbackConfig,
    ProximityConfig,
)
from ranking_proximity.errors import RankingError
from ranking_proximity.feedback import Feedback, RatedFeedback
from ranking_proximity.index import InvertedIndex
from ranking_proximity.retrieval import Retrieval
from ranking_proximity.retriever import ProximityRetriever
from ranking_proximity.vectors import TermVector

DEFAULT_PAGE_SIZE = int(os.environ.get(ENV_PREFIX + "PAGE_SIZE", "10"))
DEFAULT_SHOW_CHARS = int(os.environ.get(ENV_PREFIX + "SHOW_CHARS", "2000"))


class QuerySession:
    """
    Prompt-driven query loop.

    Args:
        index: Built index to query.
        feedback: Ask for relevance judgments when a document is shown.
        rated: Ask for a rating in [-1, 1] instead of y/n/u.
        page_size: Results per page.
        show_chars: How much of a document's text to print when it is shown.
        config: Rocchio weights for reformulation.
        input_fn: Reads one line given a prompt (default: input).
        output: Writes one line (default: print).
    """

    def __init__(
        self,
        index: InvertedIndex,
        feedback: bool = False,
        rated: bool = False,
        page_size: int = DEFAULT_PAGE_SIZE,
        show_chars: int = DEFAULT_SHOW_CHARS,
        config: FeedbackConfig | None = None,
        input_fn: Callable[[str], str] | None = None,
        output: Callable[[str], None] | None = None,
    ):
        self.index = index
        self.feedback = feedback
        self.rated = rated
        self.page_size = page_size
        self.show_chars = show_chars
        self.config = config
        self._input = input_fn or input
        self._output = output or print

    def prompt(self, message: str) -> str:
        try:
            return self._input(message).strip()
        except EOFError:
            return ""

    def run(self) -> None:
        self._output("Now able to process queries. When done, enter an empty query to exit.")
        while True:
            query = self.prompt("\nEnter query:  ")
            if not query:
                break
            self.present(self.index.query_vector(query), self.index.retrieve(query))

    def present(self, query_vector: TermVector, retrievals: list[Retrieval]) -> None:
        if not self.show_retrievals(retrievals):
            return
        session: Feedback | None = None
        if self.feedback:
            session = self.index.build_feedback(query_vector, retrievals, rated=self.rated, config=self.config)

        position = self.page_size
        while True:
            command = self.prompt("\n Enter command:  ")
            if not command:
                break
            if command == "m":
                self.print_retrievals(retrievals, position)
                position += self.page_size
                continue
            if command == "r" and session is not None:
                if session.is_empty():
                    self._output("Need to first view some documents and provide feedback.")
                    continue
                self._output(f"Positive docs: {session.good_refs}\nNegative docs: {session.bad_refs}")
                self._output("Executing New Expanded and Reweighted Query: ")
                retrievals = self.index.retrieve(session.new_query())
                session.retrievals = retrievals
                position = self.page_size
                if self.show_retrievals(retrievals):
                    continue
                break
            try:
                rank = int(command)
            except ValueError:
                self._output("Unknown command.")
                self._output("Enter `m' to see more, a number to show the nth document, nothing to exit.")
                if session is not None and not session.is_empty():
                    self._output("Enter `r' to use any feedback given to `redo' with a revised query.")
                continue
            if not 1 <= rank <= len(retrievals):
                self._output(f"No such document number: {rank}")
                continue
            self.show_document(retrievals[rank - 1])
            if session is not None and not session.has_feedback(rank):
                self.ask_judgment(session, rank)

    def show_retrievals(self, retrievals: list[Retrieval]) -> bool:
        if not retrievals:
            self._output("\nNo matching documents found.")
            return False
        self._output(f"\nTop {self.page_size} matching Documents from most to least relevant:")
        self.print_retrievals(retrievals, 0)
        self._output("\nEnter `m' to see more, a number to show the nth document, nothing to exit.")
        if self.feedback:
            self._output("Enter `r' to use any relevance feedback given to `redo' with a revised query.")
        return True

    def print_retrievals(self, retrievals: list[Retrieval], start: int) -> None:
        self._output("")
        if start >= len(retrievals):
            self._output("No more retrievals.")
            return
        for i, retrieval in enumerate(retrievals[start : start + self.page_size], start=start + 1):
            line = f"{f'{i}. ':<4}{retrieval.name:<20} Score: {retrieval.score:.5f}"
            if retrieval.has_proximity:
                line += f" (Vector: {retrieval.cosine:.5f}; Proximity: {retrieval.proximity:.5f})"
            self._output(line)

    def show_document(self, retrieval: Retrieval) -> None:
        text = retrieval.doc_ref.read_text()
        self._output(f"\n--- {retrieval.name} ---")
        self._output(text[: self.show_chars])

    def ask_judgment(self, session: Feedback, rank: int) -> None:
        doc_ref = session.reference_at(rank)
        if isinstance(session, RatedFeedback):
            response = self.prompt("Enter relevance rating for this document (-1 to +1, 0 for not relevant): ")
            try:
                rating = float(response)
            except ValueError:
                self._output("Invalid number format. No feedback recorded.")
                return
            if not -1.0 <= rating <= 1.0:
                self._output("Invalid rating. Must be between -1 and +1. Using 0.")
                return
            if session.add_rating(doc_ref, rating):
                kind = "relevant" if rating > 0 else "irrelevant"
                self._output(f"Added to {kind} documents with rating: {rating}")
            else:
                self._output("No feedback recorded for this document.")
            return

        while True:
            response = self.prompt(f"Is document #{rank}:{doc_ref.name} relevant (y:Yes, n:No, u:Unsure)?: ")
            if response == "y":
                session.add_good(doc_ref)
            elif response == "n":
                session.add_bad(doc_ref)
            elif response not in ("u", ""):
                continue
            return


def build_parser() -> argparse.ArgumentParser:
    proximity = ProximityConfig.from_env()
    parser = argparse.ArgumentParser(
        prog="ranking-proximity",
        description="Index a directory of documents and answer queries interactively.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("directory", help="Directory of documents to index.")
    parser.add_argument("--html", action="store_true", help="Documents are HTML; strip markup.")
    parser.add_argument("--stem", action="store_true", help="Apply the Porter stemmer.")
    parser.add_argument("--feedback", action="store_true", help="Enable relevance feedback.")
    parser.add_argument("--rated", action="store_true", help="Use ratings in [-1, 1] for feedback.")
    parser.add_argument(
        "--cosine-only",
        action="store_true",
        help="Rank by cosine similarity alone, without the proximity adjustment.",
    )
    parser.add_argument(
        "--strategy",
        choices=PROXIMITY_STRATEGIES,
        default=proximity.strategy,
        help=f"Proximity strategy (default: {proximity.strategy}).",
    )
    parser.add_argument(
        "--order-penalty",
        type=float,
        default=proximity.order_penalty,
        help=f"Distance multiplier for out-of-order terms (default: {proximity.order_penalty}).",
    )
    parser.add_argument(
        "--max-distance",
        type=float,
        default=proximity.max_distance,
        help=f"Distance charged for a missing term (default: {proximity.max_distance}).",
    )
    parser.add_argument("--page-size", type=int, default=DEFAULT_PAGE_SIZE, help="Results per page.")
    parser.add_argument("--quiet", action="store_true", help="Hide indexing progress.")
    return parser


def build_index(args: argparse.Namespace) -> InvertedIndex:
    doc_type = DOC_TYPE_HTML if args.html else DOC_TYPE_TEXT
    show_progress = not args.quiet
    if args.cosine_only:
        return InvertedIndex.from_directory(args.directory, doc_type, args.stem, show_progress=show_progress)
    proximity = ProximityConfig(args.strategy, args.order_penalty, args.max_distance)
    return ProximityRetriever.from_directory(
        args.directory, doc_type, args.stem, proximity=proximity, show_progress=show_progress
    )


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.WARNING if args.quiet else logging.INFO, format="%(message)s")

    try:
        index = build_index(args)
    except (RankingError, ValueError) as exc:
        parser.error(str(exc))

    session = QuerySession(
        index,
        feedback=args.feedback or args.rated,
        rated=args.rated,
        page_size=args.page_size,
        config=FeedbackConfig.from_env(),
    )
    session.run()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
