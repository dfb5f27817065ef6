"""Aura CLI interface.

Commands:
- analyze: Reverse engineer a design into work items
- check: Validate database/embedding/gateway configuration
- init: Write a default configuration file
- settings: Inspect and change the persisted LLM settings

Global options:
- --config: Path to configuration file
- --settings: Path to the LLM settings file (overrides config)
- --verbose: Enable verbose output with timestamps
- --quiet: Suppress info messages
- --ci: JSON log output
- --version: Show version and exit
"""

import base64
import json
import logging
import mimetypes
from pathlib import Path
from typing import Annotated

import typer

from aura import __version__
from aura.config import AuraConfig, create_default_config, load_config, validate_config
from aura.models.llm_config import MODULE_IDS, REVERSE_ENGINEERING_KINDS, SetterResult
from aura.settings import ConfigurationResolver
from aura.utils.logging import configure_from_cli, get_logger, mask_secret

app = typer.Typer(
    name="aura",
    help="Multi-provider LLM routing and design reverse-engineering",
    add_completion=False,
    no_args_is_help=True,
)
settings_app = typer.Typer(help="Inspect and change the persisted LLM settings", no_args_is_help=True)
app.add_typer(settings_app, name="settings")

# Global state
_config: AuraConfig | None = None
_settings_path: Path | None = None
_logger = get_logger(__name__)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"aura {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    config: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to configuration file", exists=True, dir_okay=False),
    ] = None,
    settings: Annotated[
        Path | None,
        typer.Option("--settings", "-s", help="Path to the LLM settings file", dir_okay=False),
    ] = None,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Enable verbose output with timestamps")
    ] = False,
    quiet: Annotated[
        bool, typer.Option("--quiet", "-q", help="Suppress info messages (warnings and errors only)")
    ] = False,
    ci: Annotated[bool, typer.Option("--ci", help="Enable CI mode with JSON output")] = False,
    version: Annotated[
        bool,
        typer.Option("--version", callback=version_callback, is_eager=True, help="Show version and exit"),
    ] = False,
) -> None:
    """Aura - LLM routing and design reverse-engineering."""
    global _config, _settings_path

    configure_from_cli(verbose=verbose, quiet=quiet, ci=ci)

    try:
        _config = load_config(config_path=config)
        if _config.config_path:
            _logger.debug(f"Loaded config from: {_config.config_path}")
    except FileNotFoundError as e:
        _logger.error(str(e))
        raise typer.Exit(1)
    except Exception as e:
        _logger.error(f"Failed to load config: {e}")
        raise typer.Exit(1)

    _settings_path = settings


def _get_config() -> AuraConfig:
    return _config or AuraConfig()


def _open_resolver() -> ConfigurationResolver:
    """Open the settings store described by the config (and --settings)."""
    config = _get_config()
    path = _settings_path or config.store.resolved_path
    return ConfigurationResolver.open(
        path,
        reverse_engineering_defaults=config.reverse_engineering,
        strict_models=config.store.strict_models,
    )


def _apply(resolver: ConfigurationResolver, result: SetterResult, success_message: str) -> None:
    """Persist an accepted mutation or exit with the rejection reason."""
    if not result:
        typer.echo(f"❌ {result.reason}", err=True)
        raise typer.Exit(1)
    resolver.save()
    typer.echo(f"✅ {success_message}")


# =============================================================================
# analyze command
# =============================================================================


@app.command()
def analyze(
    design_data: Annotated[
        str | None, typer.Option("--design-data", "-d", help="Design description or extracted content")
    ] = None,
    design_file: Annotated[
        Path | None,
        typer.Option("--design-file", help="Read design information from a text file", exists=True, dir_okay=False),
    ] = None,
    input_type: Annotated[
        str, typer.Option("--input-type", "-t", help="Input kind: figma, image, upload")
    ] = "image",
    figma_url: Annotated[str | None, typer.Option("--figma-url", help="Figma design URL")] = None,
    image: Annotated[
        Path | None,
        typer.Option("--image", "-i", help="Design image to analyze", exists=True, dir_okay=False),
    ] = None,
    upload: Annotated[
        list[Path] | None,
        typer.Option("--upload", "-u", help="Design file to include (repeatable)", exists=True, dir_okay=False),
    ] = None,
    level: Annotated[
        str, typer.Option("--level", "-l", help="story, epic, feature, initiative, business-brief")
    ] = "story",
    real_llm: Annotated[bool, typer.Option("--real-llm", help="Call the real LLM path")] = False,
    user_flows: Annotated[
        bool, typer.Option("--user-flows/--no-user-flows", help="Extract user flows")
    ] = True,
    accessibility: Annotated[
        bool, typer.Option("--accessibility/--no-accessibility", help="Include accessibility analysis")
    ] = True,
    output_format: Annotated[
        str, typer.Option("--format", "-f", help="Output format: json, markdown")
    ] = "json",
    output: Annotated[
        Path | None, typer.Option("--output", "-o", help="Write the result to a file")
    ] = None,
) -> None:
    """Reverse engineer a design into work items.

    Exit codes:
        0: Analysis produced (real or mock)
        1: Invalid request or unexpected failure
        2: Real LLM requested but the result is a mock fallback
    """
    from aura.models.analysis import FALLBACK_REASON_KEY, is_fallback
    from aura.pipeline import create_pipeline
    from aura.service import reverse_engineer_design

    if output_format not in {"json", "markdown"}:
        _logger.error(f"Invalid format: {output_format}. Valid: json, markdown")
        raise typer.Exit(1)

    if design_file is not None:
        design_data = design_file.read_text(encoding="utf-8")

    payload: dict = {
        "inputType": input_type,
        "designData": design_data,
        "analysisLevel": level,
        "extractUserFlows": user_flows,
        "includeAccessibility": accessibility,
        "useRealLLM": real_llm,
    }
    if figma_url:
        payload["figmaUrl"] = figma_url
    if image is not None:
        payload["imageData"] = base64.b64encode(image.read_bytes()).decode("ascii")
        payload["imageType"] = mimetypes.guess_type(image.name)[0] or "image/png"
    if upload:
        payload["fileData"] = [
            {"filename": p.name, "content": base64.b64encode(p.read_bytes()).decode("ascii")}
            for p in upload
        ]

    resolver = _open_resolver()
    pipeline = create_pipeline(_get_config(), resolver)
    response = reverse_engineer_design(payload, pipeline)

    if not response.success:
        _logger.error(response.body.get("message", "Analysis failed"))
        for error in response.body.get("errors", []):
            _logger.error(f"  {error['field']}: {error['message']}")
        raise typer.Exit(1)

    result = response.body["data"]

    if output_format == "markdown":
        from aura.templates import ReportRenderer

        rendered = ReportRenderer().render(result)
    else:
        rendered = json.dumps(result, indent=2)

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(rendered, encoding="utf-8")
        typer.echo(f"📄 Analysis written to: {output}")
    else:
        typer.echo(rendered)

    _logger.structured(
        logging.INFO,
        "Analysis complete",
        analysis_depth=result.get("analysisDepth"),
        fallback=is_fallback(result),
    )

    if is_fallback(result):
        _logger.warning(f"Real LLM unavailable, mock result returned: {result[FALLBACK_REASON_KEY]}")
        raise typer.Exit(2)


# =============================================================================
# check command
# =============================================================================


@app.command()
def check(
    json_output: Annotated[bool, typer.Option("--json", help="Output results as JSON")] = False,
) -> None:
    """Validate database, embedding and gateway configuration.

    Exit codes:
        0: Configuration valid
        1: Required settings missing
        2: Valid with warnings
    """
    result = validate_config(_get_config())

    if json_output:
        typer.echo(json.dumps(result.to_dict(), indent=2))
    else:
        typer.echo("\n🔍 Configuration Check\n")
        for error in result.errors:
            typer.echo(f"   ❌ {error}")
        for warning in result.warnings:
            typer.echo(f"   ⚠️  {warning}")
        if result.is_valid and not result.warnings:
            typer.echo("   ✅ All settings present")
        typer.echo()

    if not result.is_valid:
        raise typer.Exit(1)
    if result.warnings:
        raise typer.Exit(2)


# =============================================================================
# init command
# =============================================================================


@app.command()
def init(
    path: Annotated[
        Path, typer.Option("--path", "-p", help="Where to write the configuration file")
    ] = Path(".aura/config.yaml"),
    force: Annotated[bool, typer.Option("--force", help="Overwrite an existing file")] = False,
) -> None:
    """Write a default configuration file."""
    if path.exists() and not force:
        _logger.error(f"Config file already exists: {path} (use --force to overwrite)")
        raise typer.Exit(1)

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(create_default_config(), encoding="utf-8")
    typer.echo(f"✅ Created {path}")


# =============================================================================
# settings commands
# =============================================================================


@settings_app.command("show")
def settings_show(
    json_output: Annotated[bool, typer.Option("--json", help="Output settings as JSON")] = False,
) -> None:
    """Show the current LLM settings (API key masked)."""
    resolver = _open_resolver()
    snapshot = resolver.snapshot()
    snapshot["llmSettings"]["apiKey"] = mask_secret(snapshot["llmSettings"]["apiKey"])

    if json_output:
        snapshot["valid"] = resolver.validate_global()
        typer.echo(json.dumps(snapshot, indent=2))
        return

    llm = snapshot["llmSettings"]
    typer.echo("\n🤖 Global LLM\n")
    typer.echo(f"  provider:    {llm['provider']}")
    typer.echo(f"  model:       {llm['model']}")
    typer.echo(f"  api key:     {llm['apiKey'] or '(not set)'}")
    typer.echo(f"  temperature: {llm['temperature']}")
    typer.echo(f"  max tokens:  {llm['maxTokens']}")

    typer.echo("\n🧩 Modules\n")
    for module, tiers in snapshot["moduleLLMSettings"].items():
        primary, backup = tiers["primary"], tiers["backup"]
        typer.echo(
            f"  {module:<14} primary {primary['provider']}/{primary['model']}"
            f"  backup {backup['provider']}/{backup['model']}"
        )

    typer.echo("\n🔁 Reverse engineering\n")
    for kind, selection in snapshot["reverseEngineeringLLMSettings"].items():
        typer.echo(f"  {kind:<14} {selection['provider']}/{selection['model']}")
    typer.echo()


@settings_app.command("provider")
def settings_provider(
    provider_id: Annotated[str, typer.Argument(help="Provider id (e.g. openai, google)")],
) -> None:
    """Select the global provider (model resets to its first catalog entry)."""
    resolver = _open_resolver()
    result = resolver.set_provider(provider_id)
    _apply(resolver, result, f"Provider set to {provider_id} ({resolver.llm_settings.model})")


@settings_app.command("model")
def settings_model(
    model_id: Annotated[str, typer.Argument(help="Model id")],
) -> None:
    """Select the global model."""
    resolver = _open_resolver()
    _apply(resolver, resolver.set_model(model_id), f"Model set to {model_id}")


@settings_app.command("api-key")
def settings_api_key(
    api_key: Annotated[str, typer.Argument(help="API key for the selected provider")],
) -> None:
    """Store the global API key."""
    resolver = _open_resolver()
    _apply(resolver, resolver.set_api_key(api_key), "API key updated")


@settings_app.command("module")
def settings_module(
    module: Annotated[str, typer.Argument(help=f"One of: {', '.join(MODULE_IDS)}")],
    provider: Annotated[str, typer.Option("--provider", "-p", help="Provider id")],
    model: Annotated[str, typer.Option("--model", "-m", help="Model id")],
    tier: Annotated[str, typer.Option("--tier", help="primary or backup")] = "primary",
) -> None:
    """Route one tier of a module to a provider/model."""
    resolver = _open_resolver()
    result = resolver.set_module_tier(module, tier, provider, model)
    _apply(resolver, result, f"{module} {tier} set to {provider}/{model}")


@settings_app.command("reverse-engineering")
def settings_reverse_engineering(
    kind: Annotated[str, typer.Argument(help=f"One of: {', '.join(REVERSE_ENGINEERING_KINDS)}")],
    provider: Annotated[str, typer.Option("--provider", "-p", help="Provider id")],
    model: Annotated[str, typer.Option("--model", "-m", help="Model id")],
) -> None:
    """Select the provider/model for design or code reverse-engineering."""
    resolver = _open_resolver()
    result = resolver.set_reverse_engineering_llm(kind, provider, model)
    _apply(resolver, result, f"{kind} reverse-engineering set to {provider}/{model}")


@settings_app.command("init-env")
def settings_init_env() -> None:
    """Fill an empty API key from the provider's environment variable."""
    resolver = _open_resolver()
    if resolver.initialize_from_environment():
        resolver.save()
        typer.echo("✅ API key loaded from environment")
    else:
        typer.echo("ℹ️  No change (key already set or no environment key)")


@settings_app.command("validate")
def settings_validate(
    module: Annotated[
        str | None, typer.Option("--module", "-m", help="Validate one module's routing")
    ] = None,
) -> None:
    """Check that settings are complete enough to invoke an LLM.

    Exit codes:
        0: Complete
        1: Incomplete
    """
    resolver = _open_resolver()

    if module is not None:
        valid = resolver.validate_module(module)
        label = f"Module {module}"
    else:
        valid = resolver.validate_global()
        label = "Global LLM settings"

    if valid:
        typer.echo(f"✅ {label} complete")
    else:
        typer.echo(f"❌ {label} incomplete")
        raise typer.Exit(1)


@settings_app.command("reset")
def settings_reset() -> None:
    """Restore the default global LLM setting."""
    resolver = _open_resolver()
    resolver.reset_global()
    resolver.save()
    typer.echo("✅ LLM settings reset to defaults")
