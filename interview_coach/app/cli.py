from pathlib import Path
from typing import Optional

import orjson
import typer
from pydantic import ValidationError

from interview_coach.adaptive.store import JsonContextStore
from interview_coach.app.engine import InterviewEngine
from interview_coach.config.reliability import configure_logging
from interview_coach.config.settings import Settings, SettingsValidationError, load_settings
from interview_coach.llm.provider import NoProviderSelectedError, ProviderError
from interview_coach.models.types import InterviewMode, SessionSummary
from interview_coach.utils.io import load_json, read_text_auto

app = typer.Typer(help="Interview Coach CLI - question generation, answer scoring and adaptive analytics")


def get_settings(provider: Optional[str] = None) -> Settings:
    """Load settings from the environment, optionally overriding the preferred provider."""
    try:
        settings = load_settings()
        if provider:
            settings = Settings(**{**settings.model_dump(), "preferred_provider": provider})
    except (SettingsValidationError, ValidationError) as e:
        typer.echo(f"❌ Configuration error: {e}", err=True)
        raise typer.Exit(2)

    configure_logging(settings.log_level, settings.log_json)
    return settings


def build_engine(settings: Settings) -> InterviewEngine:
    return InterviewEngine.from_settings(settings)


def read_input(path: str, label: str) -> str:
    try:
        return read_text_auto(path)
    except FileNotFoundError:
        typer.echo(f"❌ Error: {label} file not found: {path}", err=True)
        raise typer.Exit(1)


def parse_mode(name: str) -> InterviewMode:
    try:
        return InterviewMode.from_name(name)
    except ValueError as e:
        raise typer.BadParameter(str(e))


def echo_json(result) -> None:
    typer.echo(result.model_dump_json(indent=2))


def echo_list(title: str, items) -> None:
    if not items:
        return
    typer.echo(f"{title}:")
    for item in items:
        typer.echo(f"   • {item}")


def fail_on_provider_error(e: Exception) -> None:
    if isinstance(e, NoProviderSelectedError):
        typer.echo(f"❌ {e}", err=True)
        typer.echo("💡 Run 'interview-coach providers' to see which providers respond.", err=True)
    else:
        typer.echo(f"❌ AI provider error ({e.kind.value}): {e}", err=True)
    raise typer.Exit(1)


def warn_if_degraded(degraded_fields) -> None:
    if "input_truncated" in degraded_fields:
        typer.echo("⚠️  Input was too long and was truncated before scoring.", err=True)


@app.command()
def providers(
    provider: Optional[str] = typer.Option(None, "--provider", help="Provider to activate: ollama|bedrock"),
):
    """Probe every configured AI provider and show which one is active."""
    settings = get_settings(provider)
    engine = build_engine(settings)
    try:
        typer.echo("🔌 Testing AI providers...")
        results = engine.manager.test_all()
        for name, ok in results.items():
            typer.echo(f"   {'✅' if ok else '❌'} {name}")

        typer.echo("")
        typer.echo(f"🎯 Active provider: {engine.manager.active_name}")
        available = [name for name, ok in results.items() if ok]
        typer.echo(f"📡 Available: {', '.join(available) if available else 'none'}")
    finally:
        engine.shutdown()


@app.command()
def questions(
    resume: str = typer.Option(..., "--resume", help="Path to resume text file"),
    job: str = typer.Option(..., "--job", help="Path to job description text file"),
    mode: str = typer.Option("practice", "--mode", help="Interview mode: practice|timed|surprise|faang|startup|behavioral"),
    count: int = typer.Option(5, "--count", min=1, max=50, help="Number of questions"),
    user: Optional[str] = typer.Option(None, "--user", help="User id; adapts difficulty to their profile"),
    provider: Optional[str] = typer.Option(None, "--provider", help="Provider to activate: ollama|bedrock"),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
):
    """Generate interview questions for a resume and job description."""
    interview_mode = parse_mode(mode)
    resume_text = read_input(resume, "Resume")
    job_text = read_input(job, "Job description")

    settings = get_settings(provider)
    engine = build_engine(settings)
    try:
        result = engine.generate_questions(resume_text, job_text, interview_mode, count, user_id=user)
    except (ProviderError, NoProviderSelectedError) as e:
        fail_on_provider_error(e)
    finally:
        engine.shutdown()

    if as_json:
        echo_json(result)
        return

    typer.echo(f"📝 {interview_mode.display_name} ({interview_mode.formatted_time_limit})")
    if not result.questions:
        typer.echo("⚠️  The model did not return a numbered question list.")
    for number, question in enumerate(result.questions, 1):
        typer.echo(f"   {number}. [{question.category} · {question.difficulty}] {question.text}")
    warn_if_degraded(result.degraded_fields)


@app.command()
def evaluate(
    question: str = typer.Option(..., "--question", help="Interview question text"),
    answer: Optional[str] = typer.Option(None, "--answer", help="Answer text"),
    answer_file: Optional[str] = typer.Option(None, "--answer-file", help="Path to a file holding the answer"),
    category: str = typer.Option("General", "--category", help="Question category"),
    provider: Optional[str] = typer.Option(None, "--provider", help="Provider to activate: ollama|bedrock"),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
):
    """Score one answer to an interview question."""
    if answer is None and answer_file is None:
        raise typer.BadParameter("Provide --answer or --answer-file")
    answer_text = answer if answer is not None else read_input(answer_file, "Answer")

    settings = get_settings(provider)
    engine = build_engine(settings)
    try:
        result = engine.evaluate_answer(question, answer_text, category)
    except (ProviderError, NoProviderSelectedError) as e:
        fail_on_provider_error(e)
    finally:
        engine.shutdown()

    if as_json:
        echo_json(result)
        return

    typer.echo(f"🎯 Score: {result.score:.1f}/10")
    typer.echo(f"   Words: {result.word_count}, filler words: {result.filler_word_count} ({result.filler_word_rate:.1f}%)")
    typer.echo("")
    typer.echo(result.feedback)
    warn_if_degraded(result.degraded_fields)


@app.command()
def resume(
    resume: str = typer.Option(..., "--resume", help="Path to resume text file"),
    job: str = typer.Option(..., "--job", help="Path to job description text file"),
    provider: Optional[str] = typer.Option(None, "--provider", help="Provider to activate: ollama|bedrock"),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
):
    """Analyze how well a resume matches a job description."""
    resume_text = read_input(resume, "Resume")
    job_text = read_input(job, "Job description")

    settings = get_settings(provider)
    engine = build_engine(settings)
    try:
        result = engine.analyze_resume(resume_text, job_text)
    except (ProviderError, NoProviderSelectedError) as e:
        fail_on_provider_error(e)
    finally:
        engine.shutdown()

    if as_json:
        echo_json(result)
        return

    typer.echo(f"📊 Match score: {result.score}/100 ({result.match_level})")
    typer.echo("")
    typer.echo(result.overall_feedback)
    typer.echo("")
    echo_list("✅ Strengths", result.strengths)
    echo_list("⚠️  Weaknesses", result.weaknesses)
    echo_list("💡 Suggestions", result.suggestions)
    echo_list("🧩 Matching skills", result.matching_skills)
    echo_list("🕳️  Missing skills", result.missing_skills)
    warn_if_degraded(result.degraded_fields)


@app.command()
def analytics(
    session: str = typer.Option(..., "--session", help="Path to a session summary JSON file"),
    user: Optional[str] = typer.Option(None, "--user", help="User id whose profile is updated"),
    provider: Optional[str] = typer.Option(None, "--provider", help="Provider to activate: ollama|bedrock"),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
):
    """Score a finished interview session and update the user's adaptive profile."""
    try:
        summary = SessionSummary.model_validate(load_json(session))
    except FileNotFoundError:
        typer.echo(f"❌ Error: session file not found: {session}", err=True)
        raise typer.Exit(1)
    except (orjson.JSONDecodeError, ValidationError, ValueError) as e:
        typer.echo(f"❌ Error: invalid session file {session}: {e}", err=True)
        raise typer.Exit(1)

    settings = get_settings(provider)
    engine = build_engine(settings)
    try:
        result = engine.generate_analytics(summary, user_id=user)
        context = engine.profile(user) if user else None
    except (ProviderError, NoProviderSelectedError) as e:
        fail_on_provider_error(e)
    finally:
        engine.shutdown()

    if as_json:
        echo_json(result)
        return

    typer.echo(f"🏁 Overall: {result.overall_score:.1f}/10 ({result.score_level}) - {result.performance_level}")
    for category, score in result.subscores.items():
        typer.echo(f"   • {category}: {score:.1f}")
    typer.echo("")
    echo_list("✅ Strengths", result.strengths)
    echo_list("⚠️  Weaknesses", result.weaknesses)
    echo_list("💡 Suggestions", result.suggestions)
    typer.echo("")
    typer.echo(result.narrative)
    typer.echo("")
    typer.echo(f"🤖 Graded by: {result.generated_by}")
    if context is not None:
        typer.echo(f"📈 Next difficulty: {context.difficulty_label} (level {context.difficulty_level})")
        if context.focus_areas:
            typer.echo(f"🎯 Focus areas: {', '.join(context.focus_areas)}")
    warn_if_degraded(result.degraded_fields)


@app.command()
def profile(
    user: str = typer.Option(..., "--user", help="User id"),
    data_dir: Optional[Path] = typer.Option(None, "--data-dir", help="Override the profile directory"),
    as_json: bool = typer.Option(False, "--json", help="Print the profile as JSON"),
):
    """Show a stored adaptive profile."""
    settings = get_settings()
    store = JsonContextStore(data_dir or settings.data_dir)
    context = store.load(user)
    if context is None:
        typer.echo(f"ℹ️  No stored profile for '{user}'.")
        raise typer.Exit(0)

    if as_json:
        typer.echo(orjson.dumps(context.model_dump(mode="json"), option=orjson.OPT_INDENT_2).decode())
        return

    typer.echo(f"👤 {context.user_id}")
    typer.echo(f"   Sessions: {context.session_count}")
    typer.echo(f"   Difficulty: {context.difficulty_label} (level {context.difficulty_level})")
    if context.last_session_date:
        typer.echo(f"   Last session: {context.last_session_date.isoformat()}")
    for category, level in sorted(context.skill_levels.items()):
        typer.echo(f"   • {category}: {level:.1f}")
    if context.focus_areas:
        typer.echo(f"🎯 Focus areas: {', '.join(context.focus_areas)}")


if __name__ == "__main__":
    app()
