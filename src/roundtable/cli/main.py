"""
Main CLI application for Roundtable.

Runs dispatch rounds from scenario files against in-memory collaborators
and exposes the error classifier for inspection.
"""

import asyncio
import json
import logging
import sys
from typing import Any, Dict, List, Optional

import click

from roundtable.lib.config import ConfigurationError, RoundtableConfig, initialize_config
from roundtable.lib.logging_config import setup_logging
from roundtable.lib.metrics import initialize_metrics
from roundtable.lib.observability import get_meter, initialize_telemetry, shutdown_telemetry
from roundtable.models.agent_event import AgentEvent
from roundtable.models.message import MessageRole, NewMessage
from roundtable.services.container import create_chat_orchestration_service
from roundtable.services.error_mapper import ErrorMapper
from roundtable.services.errors import LlmProviderError
from roundtable.cli.scenario import Scenario, ScenarioError, load_scenario


logger = logging.getLogger("roundtable.cli")


def _configure_runtime(config: RoundtableConfig, debug: bool) -> None:
    """Apply logging and telemetry settings from the loaded configuration."""
    logging_settings = config.logging.model_dump()
    if debug or config.debug:
        logging_settings["level"] = "DEBUG"
    setup_logging(logging_settings)

    if config.observability.enabled:
        initialize_telemetry(config.observability)
        initialize_metrics(get_meter())


async def _dispatch_impl(
    scenario: Scenario,
    config: RoundtableConfig,
    events: List[AgentEvent]
) -> Dict[str, Any]:
    """Persist the scenario's user message and run one dispatch round."""
    store = scenario.build_store()
    bridge = scenario.build_bridge()

    service = create_chat_orchestration_service(
        llm_bridge=bridge,
        message_repository=store,
        conversation_agents_repository=store,
        agent_resolver=store,
        dispatch_config=config.dispatch
    )

    user_message = await store.create(NewMessage(
        conversation_id=scenario.conversation_id,
        role=MessageRole.USER,
        content=scenario.user_message
    ))

    result = await service.process_user_message(
        scenario.conversation_id, user_message.id, events.append
    )

    return {
        "result": result.model_dump(mode="json"),
        "messages": [
            message.model_dump(mode="json", include={"role", "conversation_agent_id", "content"})
            for message in store.messages(scenario.conversation_id)
        ],
    }


# CLI Commands

@click.group()
@click.option('--config', '-c', help='Configuration file path')
@click.option('--debug', is_flag=True, help='Enable debug mode')
@click.pass_context
def cli(ctx, config, debug):
    """Roundtable multi-agent dispatch CLI."""
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config
    ctx.obj['debug'] = debug


@cli.command()
@click.argument('scenario_path', metavar='SCENARIO')
@click.option('--config', '-c', 'config_path', help='Configuration file path (overrides the group option)')
@click.option('--events/--no-events', default=False, help='Include every agent status event in the output')
@click.pass_context
def dispatch(ctx, scenario_path, config_path, events):
    """Run one dispatch round described by a scenario YAML file."""
    try:
        config_manager = initialize_config(config_path or ctx.obj.get('config_path'))
        config = config_manager.get_config()
        scenario = load_scenario(scenario_path)
    except ConfigurationError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)
    except ScenarioError as e:
        click.echo(f"Scenario error: {e}", err=True)
        sys.exit(1)

    _configure_runtime(config, ctx.obj.get('debug', False))
    logger.info(
        "Running dispatch scenario",
        extra={
            "scenario": scenario_path,
            "conversation_id": scenario.conversation_id,
            "agent_count": len(scenario.agents),
        }
    )

    collected: List[AgentEvent] = []
    try:
        output = asyncio.run(_dispatch_impl(scenario, config, collected))
    finally:
        shutdown_telemetry()

    if events:
        output["events"] = [event.model_dump(mode="json") for event in collected]

    click.echo(json.dumps(output, indent=2))


@cli.command()
@click.argument('message')
@click.option('--provider', help='Classify as a failure reported by this provider')
@click.option('--agent', 'agent_label', default='cli', help='Agent label used in the user message')
def classify(message, provider, agent_label):
    """Show how an error message is classified."""
    error: Exception
    if provider:
        error = LlmProviderError(message, provider=provider)
    else:
        error = RuntimeError(message)

    chat_error = ErrorMapper.classify(error, "cli", agent_label)

    click.echo(json.dumps({
        "type": chat_error.type.value,
        "code": chat_error.code,
        "retryable": chat_error.retryable,
        "provider": chat_error.provider,
        "user_message": chat_error.user_message,
    }, indent=2))


def main(args: Optional[List[str]] = None) -> None:
    """Console entry point."""
    cli(args=args, obj={})


if __name__ == '__main__':
    main()
