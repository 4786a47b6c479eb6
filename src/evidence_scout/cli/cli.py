"""Command-line interface for EvidenceScout."""

import asyncio
import json
import logging
from pathlib import Path

import click
from dotenv import load_dotenv

from evidence_scout.agents.literature import STRATEGIES
from evidence_scout.agents.orchestrator import build_orchestrator
from evidence_scout.config import get_settings
from evidence_scout.data_sources.rxnav import RxNavClient
from evidence_scout.models.model_research import ResearchResult
from evidence_scout.services.drug_normalizer import DrugNameNormalizer
from evidence_scout.services.llm import build_chat_client
from evidence_scout.services.synthesis import SynthesisError


def _configure_logging(verbose: bool) -> None:
    level = "DEBUG" if verbose else get_settings().log_level
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _echo_result(result: ResearchResult) -> None:
    click.echo()
    click.echo(result.answer)
    if result.sources:
        click.echo("\nSources:")
        for i, source in enumerate(result.sources, 1):
            click.echo(f"  [{i}] {source.title} ({source.source.value}, {source.date})")
            click.echo(f"      {source.url}")


async def _ask(question: str, strategy: str | None) -> ResearchResult:
    async with build_orchestrator(strategy=strategy) as orchestrator:
        return await orchestrator.orchestrate_research(
            question, on_progress=lambda status: click.echo(status, err=True)
        )


@click.group()
@click.version_option(package_name="evidence-scout")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def main(verbose: bool):
    """EvidenceScout: cited literature answers for clinical questions."""
    load_dotenv()
    _configure_logging(verbose)


@main.command()
@click.argument("question")
@click.option(
    "-s",
    "--strategy",
    type=click.Choice(STRATEGIES),
    default=None,
    help="Search strategy (defaults to the configured one)",
)
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.option("-o", "--output", type=click.Path(), help="Output file path (JSON)")
def ask(question: str, strategy: str | None, as_json: bool, output: str | None):
    """Answer a clinical QUESTION from PubMed and OpenAlex evidence."""
    question = question.strip()
    if not question:
        raise click.BadParameter("must not be blank", param_hint="QUESTION")

    try:
        result = asyncio.run(_ask(question, strategy))
    except SynthesisError as e:
        raise click.ClickException(f"Could not synthesize an answer, please retry: {e}")

    payload = result.model_dump(mode="json")
    if as_json:
        click.echo(json.dumps(payload, indent=2, ensure_ascii=False))
    else:
        _echo_result(result)

    if output:
        Path(output).write_text(json.dumps(payload, indent=2, ensure_ascii=False))
        click.echo(f"\nResults saved to: {output}")


@main.command()
@click.argument("term")
def normalize(term: str):
    """Resolve a drug TERM (brand or colloquial) to RxNorm and MeSH."""

    async def _normalize():
        chat_client = build_chat_client(get_settings())
        normalizer = DrugNameNormalizer(
            RxNavClient(),
            chat_client=chat_client,
            translation_model=get_settings().translation_model,
        )
        try:
            return await normalizer.normalize(term)
        finally:
            await chat_client.close()

    result = asyncio.run(_normalize())
    if result is None:
        click.echo(f"No match for: {term}")
        return
    click.echo(f"{result.name} (RxCUI {result.rxcui}, score {result.score:.0f})")
    if result.mesh_terms:
        click.echo(f"MeSH: {', '.join(result.mesh_terms)}")


if __name__ == "__main__":
    main()
