from __future__ import annotations

import argparse
import json
import sys
import time
from pathlib import Path
from typing import Callable, List, Optional

import yaml

from quizrunner.app import QuizApp
from quizrunner.config import AppConfig, default_app_config
from quizrunner.data.loader import load_questions, read_document
from quizrunner.data.topics import available_topics, topic_stats
from quizrunner.errors import ConfirmationRequired, EmptySetError, QuizError, ValidationError
from quizrunner.history.export import EXPORT_FORMATS
from quizrunner.history.store import HISTORY_BANDS
from quizrunner.scoring.grading import BAND_ALL
from quizrunner.utils.determinism import set_determinism
from quizrunner.utils.io import write_text
from quizrunner.utils.logging import setup_logging
from quizrunner.views import QuestionView, ResultView, ReviewView

InputFn = Callable[[str], str]

PLAY_HELP = """Commands:
  1-9 or A-Z   choose an answer        n / p    next / previous question
  g <number>   go to question          b        toggle bookmark
  s            submit                  q        quit without saving"""


def render_question(view: QuestionView) -> str:
    lines = [f"Question {view.position + 1}/{view.total}" + (" [bookmarked]" if view.bookmarked else "")]
    if view.timer_display is not None:
        lines[0] += f"  time left {view.timer_display}"
    lines.append(view.text)
    for i, answer in enumerate(view.answers):
        marker = ">" if view.selected == i else " "
        lines.append(f" {marker} {chr(ord('A') + i)}. {answer}")
    lines.append(f"Answered: {view.answered_count}/{view.total}")
    return "\n".join(lines)


def render_review(view: ReviewView) -> str:
    lines = [f"Review {view.position + 1}/{view.total}", view.text]
    for i, answer in enumerate(view.answers):
        tag = ""
        if i == view.correct_index:
            tag = "  (correct)"
        elif i == view.user_answer:
            tag = "  (your answer)"
        lines.append(f"   {chr(ord('A') + i)}. {answer}{tag}")
    if view.user_answer is None:
        lines.append("Not answered")
    if view.explanation:
        lines.append(f"Explanation: {view.explanation}")
    return "\n".join(lines)


def render_result(view: ResultView) -> str:
    r = view.result
    lines = [
        f"Score: {r.score:.2f}/10  {r.message}",
        f"Correct: {r.correct_count}  Wrong: {r.wrong_count}  Total: {r.total}",
    ]
    if r.time_expired:
        lines.insert(0, "Time is up!")
    for wrong in view.wrong_answers:
        lines.append(f"  #{wrong.position + 1} {wrong.text}")
        lines.append(f"     you: {wrong.user_answer_text or 'not answered'}  correct: {wrong.correct_answer_text}")
    return "\n".join(lines)


def parse_choice(token: str) -> Optional[int]:
    if token.isdigit():
        return int(token) - 1
    if len(token) == 1 and token.isalpha():
        return ord(token.upper()) - ord("A")
    return None


def _load_config(path: Optional[str]) -> AppConfig:
    if path is None:
        return default_app_config()
    return AppConfig.from_file(path)


def cmd_validate(args, logger) -> int:
    try:
        questions = load_questions(read_document(args.path))
    except ValidationError as e:
        print(f"Invalid: {e}")
        for err in e.errors[3:]:
            print(err)
        logger.error("Validation failed for %s: %d error(s)", args.path, len(e.errors))
        return 1
    print(f"OK: {len(questions)} questions")
    return 0


def cmd_topics(args, logger) -> int:
    try:
        questions = load_questions(read_document(args.path))
    except ValidationError as e:
        print(f"Invalid: {e}")
        return 1
    for topic in available_topics(questions):
        stats = topic_stats(questions, topic)
        print(f"{topic}\t{stats.count}\t{stats.percent}%")
    return 0


def _answer_phase(app: QuizApp, input_fn: InputFn) -> Optional[ResultView]:
    """Run the answering loop until submission; None means the user quit."""
    view = app.current_view()
    last = time.monotonic()
    while True:
        print(render_question(view))
        token = input_fn("> ").strip()

        if app.session.timer is not None:
            now = time.monotonic()
            elapsed = int(now - last)
            last += elapsed
            if elapsed:
                ticked = app.tick(elapsed)
                if isinstance(ticked, ResultView):
                    return ticked

        if token == "q":
            app.go_home()
            return None
        if token == "?":
            print(PLAY_HELP)
            continue
        try:
            if token == "n":
                view = app.next()
            elif token == "p":
                view = app.prev()
            elif token == "b":
                view = app.toggle_bookmark()
            elif token.startswith("g "):
                view = app.go_to(int(token[2:]) - 1)
            elif token == "s":
                outcome = app.submit()
                if isinstance(outcome, ConfirmationRequired):
                    confirm = input_fn(f"{outcome.count} question(s) unanswered. Submit anyway? [y/N] ")
                    if confirm.strip().lower() != "y":
                        continue
                    outcome = app.submit(force_confirm_unanswered=True)
                return outcome
            else:
                choice = parse_choice(token)
                if choice is None:
                    print(PLAY_HELP)
                    continue
                view = app.select_answer(choice)
        except ValueError as e:
            print(f"Error: {e}")


def _review_phase(app: QuizApp, input_fn: InputFn) -> None:
    view = app.enter_review()
    while True:
        print(render_review(view))
        token = input_fn("review (n/p/x)> ").strip()
        if token == "n":
            view = app.next()
        elif token == "p":
            view = app.prev()
        elif token == "x":
            app.exit_review()
            return


def cmd_play(args, cfg: AppConfig, logger, input_fn: InputFn = input) -> int:
    app = QuizApp(cfg)
    try:
        app.import_file(args.path)
        if args.topic:
            app.select_topic(args.topic)
    except (ValidationError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    # Flags apply to this run only and are not saved
    if args.shuffle_questions:
        app.settings.shuffle_questions = True
    if args.shuffle_answers:
        app.settings.shuffle_answers = True
    if args.timer is not None:
        app.settings.timer_enabled = True
        app.settings.set_time_limit(args.timer)

    try:
        app.start()
    except EmptySetError as e:
        print(f"Error: {e}")
        return 1
    print(PLAY_HELP)

    while True:
        result = _answer_phase(app, input_fn)
        if result is None:
            return 0
        print(render_result(result))
        while True:
            options = "[v]iew answers, [a] retry all, [q]uit"
            if result.can_retry_wrong:
                options = "[r]etry wrong, " + options
            token = input_fn(f"{options}> ").strip()
            try:
                if token == "v":
                    _review_phase(app, input_fn)
                    continue
                if token == "r" and result.can_retry_wrong:
                    app.retry_wrong()
                elif token == "a":
                    app.retry_all()
                elif token == "q":
                    app.go_home()
                    return 0
                else:
                    continue
            except QuizError as e:
                print(f"Error: {e}")
                logger.error("Could not restart session: %s", e)
                continue
            break


def cmd_history(args, cfg: AppConfig, logger) -> int:
    app = QuizApp(cfg)
    if args.clear:
        app.clear_history()
        print("History cleared")
        return 0
    if args.export:
        text = app.export_history(args.export)
        if args.output:
            out = Path(args.output)
            write_text(out, text)
            print(f"Wrote {len(app.history)} sessions to {out}")
        else:
            print(text)
        return 0

    entries = app.filter_history(args.band)
    if not entries:
        print("No results")
        return 0
    for e in entries:
        spent = f"{e.time_spent_seconds}s" if e.time_spent_seconds is not None else "N/A"
        print(f"{e.timestamp:%Y-%m-%d %H:%M}  {e.score:5.2f}  {e.correct_count}/{e.total_questions}  {spent}  {e.topic}")
    if args.summary:
        print(json.dumps(app.history_summary(), indent=2))
    return 0


def main(argv: Optional[List[str]] = None, input_fn: InputFn = input) -> int:
    parser = argparse.ArgumentParser(
        description="quizrunner - run multiple-choice quizzes from a JSON question file",
        epilog="""Examples:
  # Check a question file
  quizrunner validate questions.json

  # List topics with question counts
  quizrunner topics questions.json

  # Take a shuffled, timed quiz on one topic
  quizrunner play questions.json --topic algebra --shuffle-questions --shuffle-answers --timer 10

  # Export history as CSV
  quizrunner history --export csv --output history.csv
""",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument("--config", "-c", default=None, help="Path to config JSON or YAML (default: built-in defaults)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log debug output")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    validate_parser = subparsers.add_parser("validate", help="Validate a question file")
    validate_parser.add_argument("path", help="Path to question JSON file")

    topics_parser = subparsers.add_parser("topics", help="List topics in a question file")
    topics_parser.add_argument("path", help="Path to question JSON file")

    play_parser = subparsers.add_parser("play", help="Take a quiz in the terminal")
    play_parser.add_argument("path", help="Path to question JSON file")
    play_parser.add_argument("--topic", help="Only ask questions from this topic")
    play_parser.add_argument("--shuffle-questions", action="store_true", help="Shuffle question order")
    play_parser.add_argument("--shuffle-answers", action="store_true", help="Shuffle answers within each question")
    play_parser.add_argument("--timer", type=int, help="Time limit in minutes")
    play_parser.add_argument("--seed", type=int, help="Seed for reproducible shuffling")

    history_parser = subparsers.add_parser("history", help="Show, filter, export or clear session history")
    history_parser.add_argument("--band", choices=HISTORY_BANDS, default=BAND_ALL, help="Score band to show")
    history_parser.add_argument("--export", choices=EXPORT_FORMATS, help="Export history in this format")
    history_parser.add_argument("--output", "-o", help="Write the export to this file instead of stdout")
    history_parser.add_argument("--summary", action="store_true", help="Print score statistics")
    history_parser.add_argument("--clear", action="store_true", help="Delete all saved history")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    try:
        cfg = _load_config(args.config)
    except FileNotFoundError:
        print(f"Error: Config file '{args.config}' not found")
        return 1
    except (json.JSONDecodeError, yaml.YAMLError, TypeError) as e:
        print(f"Error: Invalid config in '{args.config}': {e}")
        return 1

    level = "DEBUG" if args.verbose else cfg.logging.level
    logger = setup_logging(cfg.logging.log_dir, cfg.logging.filename, level, cfg.logging.structured)

    if args.command == "validate":
        return cmd_validate(args, logger)
    if args.command == "topics":
        return cmd_topics(args, logger)
    if args.command == "play":
        if args.seed is not None:
            set_determinism(args.seed)
            cfg.importing.seed = args.seed
        return cmd_play(args, cfg, logger, input_fn=input_fn)
    if args.command == "history":
        return cmd_history(args, cfg, logger)
    return 1


if __name__ == "__main__":
    sys.exit(main())
