"""
Skill Manager - find, install and remove skills for AI coding agents.

Skills live in each agent's own directory (~/.claude/skills, ~/.cursor/skills,
...) or once in the shared ~/.agents/skills directory with symlinks from the
agents that use them. Installs and bulk removals go through `npx skills`.

Usage:
    skill-manager list
    skill-manager global
    skill-manager install vercel-labs/agent-skills --agent cursor
    skill-manager uninstall my-skill --agent cursor
"""

import asyncio
import json
import sys
from collections import Counter
from typing import Any, Dict, List, Optional

import readchar
import typer
from rich.console import Console
from rich.live import Live
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from . import __version__, api
from .agents import AgentRegistry
from .config import Settings, get_config_path, load_settings, update_setting
from .errors import SkillManagerError
from .ledger import SourceLedger
from .log import setup_logging


console = Console()
app = typer.Typer(
    name="skill-manager",
    help="Manage skills for AI coding agents",
    add_completion=False,
)

config_app = typer.Typer(
    help="Show and change settings",
    no_args_is_help=True,
)
app.add_typer(config_app, name="config")


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
):
    """
    Manage skills for AI coding agents.
    """
    level = "DEBUG"
    if not verbose:
        try:
            level = load_settings().log_level
        except SkillManagerError:
            level = "WARNING"
    setup_logging(level)

    if ctx.invoked_subcommand is None:
        console.print("[bold cyan]Skill Manager[/bold cyan] [dim]skills for AI coding agents[/dim]\n")
        console.print(ctx.get_help())


# =============================================================================
# Utility Functions
# =============================================================================

def get_settings() -> Settings:
    """Load settings, exiting with a readable error if they are broken."""
    try:
        settings = load_settings()
        settings.resolve_home()
        return settings
    except SkillManagerError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)


def unwrap(result: api.OperationResult) -> Any:
    """Return a successful result's value or print its error and exit."""
    if not result.ok:
        console.print(f"[red]Error:[/red] {escape(result.error or '')}")
        raise typer.Exit(1)
    return result.value


def get_key() -> str:
    """Get a single keypress in a cross-platform way using readchar."""
    key = readchar.readkey()

    if key == readchar.key.UP or key == readchar.key.CTRL_P:
        return 'up'
    if key == readchar.key.DOWN or key == readchar.key.CTRL_N:
        return 'down'
    if key == readchar.key.ENTER:
        return 'enter'
    if key == readchar.key.ESC:
        return 'esc'
    if key == readchar.key.CTRL_C:
        raise KeyboardInterrupt
    if key == ' ':
        return 'space'
    if key.lower() == 'a':
        return 'a'
    return key


def select_agents_interactive(
    registry: AgentRegistry,
    prompt_text: str = "Select agents to install for",
    preselected: Optional[List[str]] = None,
) -> List[str]:
    """
    Interactive multi-select for agents using arrow keys and space.

    Controls:
    - ↑/↓: Navigate
    - Space: Toggle selection
    - A: Select/deselect all
    - Enter: Confirm
    - Esc: Cancel

    Returns list of selected agent ids, in registry order.
    """
    option_keys = registry.ids()
    selected = set(preselected or [])
    cursor_index = 0

    # Non-interactive: keep whatever was preselected
    if not sys.stdin.isatty():
        return [k for k in option_keys if k in selected]

    def create_selection_panel():
        lines = []
        for i, key in enumerate(option_keys):
            cursor = "→" if i == cursor_index else " "
            check = "✓" if key in selected else " "
            path = registry.get(key)
            if i == cursor_index:
                line = f"[bold cyan]{cursor} [{check}] {key}[/bold cyan] [dim]~/{path}[/dim]"
            else:
                line = f"[white]{cursor} [{check}] {key}[/white] [dim]~/{path}[/dim]"
            lines.append(line)

        lines.append("")
        lines.append("[dim]↑/↓: navigate  Space: toggle  A: all  Enter: confirm  Esc: cancel[/dim]")

        return Panel(
            "\n".join(lines),
            title=f"[bold cyan]{prompt_text}[/bold cyan]",
            border_style="cyan"
        )

    with Live(create_selection_panel(), console=console, transient=True, refresh_per_second=10) as live:
        while True:
            try:
                key = get_key()
            except KeyboardInterrupt:
                console.print("\n[yellow]Selection cancelled[/yellow]")
                raise typer.Exit(1)

            if key == 'up':
                cursor_index = (cursor_index - 1) % len(option_keys)
            elif key == 'down':
                cursor_index = (cursor_index + 1) % len(option_keys)
            elif key == 'space':
                current_key = option_keys[cursor_index]
                if current_key in selected:
                    selected.remove(current_key)
                else:
                    selected.add(current_key)
            elif key == 'a':
                if len(selected) == len(option_keys):
                    selected.clear()
                else:
                    selected = set(option_keys)
            elif key == 'enter':
                break
            elif key == 'esc':
                console.print("\n[yellow]Selection cancelled[/yellow]")
                raise typer.Exit(1)

            live.update(create_selection_panel())

    return [k for k in option_keys if k in selected]


def print_json(data: Any) -> None:
    # Plain print: rich would wrap long lines and break the JSON
    print(json.dumps(data, indent=2))


# =============================================================================
# Scan Commands
# =============================================================================

@app.command(name="list")
def list_skills(
    agent: Optional[str] = typer.Option(
        None, "--agent", "-a",
        help="Only show skills for this agent"
    ),
    json_output: bool = typer.Option(
        False, "--json",
        help="Output as JSON"
    ),
):
    """
    List skills installed for each agent.

    Examples:
        skill-manager list                # Every agent
        skill-manager list -a cursor      # Only Cursor
        skill-manager list --json         # Output as JSON
    """
    settings = get_settings()
    if agent and agent not in settings.registry():
        console.print(f"[red]Error:[/red] Unknown agent: {agent}")
        console.print(f"Known agents: {', '.join(settings.registry().ids())}")
        raise typer.Exit(1)

    skills = unwrap(api.get_local_skills(settings))
    if agent:
        skills = [s for s in skills if s.agent == agent]

    if json_output:
        print_json([s.to_dict() for s in skills])
        return

    if not skills:
        console.print("[dim]No skills installed[/dim]")
        return

    table = Table(title="Installed Skills", show_header=True, header_style="bold cyan")
    table.add_column("Agent", style="cyan")
    table.add_column("Skill", style="green")
    table.add_column("Name")
    table.add_column("Link", justify="center")
    table.add_column("Source", style="dim")

    for skill in skills:
        table.add_row(
            skill.agent,
            skill.id,
            skill.name,
            "✓" if skill.is_symlink else "",
            skill.source or "",
        )

    console.print(table)
    console.print(f"\n[dim]{len(skills)} skill(s)[/dim]")


@app.command(name="global")
def global_skills(
    json_output: bool = typer.Option(
        False, "--json",
        help="Output as JSON"
    ),
):
    """List skills in the shared global directory and which agents link to them."""
    settings = get_settings()
    skills = unwrap(api.list_global_skills(settings))

    if json_output:
        print_json([s.to_dict() for s in skills])
        return

    if not skills:
        console.print(f"[dim]No global skills in ~/{settings.global_dir}[/dim]")
        return

    table = Table(title="Global Skills", show_header=True, header_style="bold cyan")
    table.add_column("Skill", style="green")
    table.add_column("Description")
    table.add_column("Used By", style="cyan")
    table.add_column("Source", style="dim")

    for skill in skills:
        desc = skill.description
        if len(desc) > 50:
            desc = desc[:47] + "..."
        table.add_row(skill.id, desc, ", ".join(skill.used_by) or "-", skill.source or "")

    console.print(table)


@app.command()
def agents():
    """Show known agents, their skills directories and how many global skills each links."""
    settings = get_settings()
    home = settings.resolve_home()
    global_skills = unwrap(api.list_global_skills(settings))
    linked = Counter(agent_id for skill in global_skills for agent_id in skill.used_by)

    table = Table(title="Agents")
    table.add_column("Agent", style="cyan")
    table.add_column("Skills Directory")
    table.add_column("Exists", style="green", justify="center")
    table.add_column("Global Links", style="yellow", justify="right")

    for agent_id, relative_path in settings.registry():
        skills_dir = home / relative_path
        table.add_row(
            agent_id,
            f"~/{relative_path}",
            "✓" if skills_dir.exists() else "✗",
            str(linked[agent_id]) if linked[agent_id] else "",
        )

    console.print(table)


@app.command()
def sources(
    json_output: bool = typer.Option(
        False, "--json",
        help="Output as JSON"
    ),
):
    """Show the recorded source of each installed skill."""
    settings = get_settings()
    ledger = SourceLedger(settings.ledger_file())
    snapshot = ledger.load()

    if json_output:
        print_json(snapshot.entries)
        return

    if not snapshot.ok:
        console.print(f"[yellow]Warning:[/yellow] ledger {ledger.path} is {snapshot.state.value}")
    if not snapshot.entries:
        console.print("[dim]No sources recorded[/dim]")
        return

    table = Table(title="Skill Sources")
    table.add_column("Skill", style="green")
    table.add_column("Source", style="cyan")
    for skill_id, source in sorted(snapshot.entries.items()):
        table.add_row(skill_id, source)
    console.print(table)


# =============================================================================
# Install / Remove Commands
# =============================================================================

@app.command()
def install(
    source: str = typer.Argument(..., help="Repo (owner/repo), git URL or package to install"),
    skill: Optional[str] = typer.Option(
        None, "--skill", "-s",
        help="Install only this skill from a multi-skill repo"
    ),
    global_: Optional[bool] = typer.Option(
        None, "--global/--no-global", "-g",
        help="Install into the shared global directory (default from config)"
    ),
    agent: Optional[List[str]] = typer.Option(
        None, "--agent", "-a",
        help="Agent to install for; repeat for several (default from config)"
    ),
    yes: Optional[bool] = typer.Option(
        None, "--yes/--no-yes", "-y",
        help="Skip the tool's confirmation prompts (default from config)"
    ),
    interactive: bool = typer.Option(
        False, "--interactive", "-i",
        help="Pick agents with an interactive selector"
    ),
):
    """
    Install skills with `npx skills add`.

    Examples:
        skill-manager install vercel-labs/agent-skills
        skill-manager install vercel-labs/agent-skills --skill web-design -a cursor -a claude-code
        skill-manager install https://github.com/me/my-skill.git --no-global -i
    """
    settings = get_settings()
    target_agents = list(agent) if agent else list(settings.target_agents)
    if interactive:
        target_agents = select_agents_interactive(settings.registry(), preselected=target_agents)
    use_global = settings.install_global if global_ is None else global_
    auto_confirm = settings.auto_confirm if yes is None else yes

    console.print(f"[cyan]Installing {source}...[/cyan]")
    message = unwrap(asyncio.run(api.install_skill(
        source,
        skill=skill,
        global_=use_global,
        agents=target_agents,
        auto_confirm=auto_confirm,
        settings=settings,
    )))
    console.print(f"[green]✓[/green] {message}")


@app.command()
def uninstall(
    skill_id: str = typer.Argument(..., help="Skill id (its directory name)"),
    agent: Optional[List[str]] = typer.Option(
        None, "--agent", "-a",
        help="Agent to uninstall from; repeat for several (default: every agent that has it)"
    ),
):
    """
    Delete a skill from agents' skills directories.

    Links are removed without touching the global copy they point to.
    """
    settings = get_settings()
    if agent:
        targets = list(agent)
    else:
        skills = unwrap(api.get_local_skills(settings))
        targets = [s.agent for s in skills if s.id == skill_id]
        if not targets:
            console.print(f"[red]Skill '{skill_id}' not found.[/red]")
            raise typer.Exit(1)

    message = unwrap(api.uninstall_skill(skill_id, targets, settings=settings))
    for line in message.splitlines():
        agent_id, _, outcome = line.partition(": ")
        style = "green" if outcome == "Removed" else "yellow"
        console.print(f"  [{style}]{agent_id}[/{style}]: {escape(outcome)}")


@app.command()
def remove(
    skill_ids: Optional[List[str]] = typer.Argument(None, help="Skill ids to remove"),
    remove_all: bool = typer.Option(False, "--all", help="Remove every skill"),
    global_: bool = typer.Option(False, "--global", "-g", help="Remove from the global directory"),
    agent: Optional[List[str]] = typer.Option(
        None, "--agent", "-a",
        help="Agent to remove from; repeat for several"
    ),
    yes: Optional[bool] = typer.Option(
        None, "--yes/--no-yes", "-y",
        help="Skip the tool's confirmation prompts (default from config)"
    ),
):
    """
    Remove skills with `npx skills remove`.

    Examples:
        skill-manager remove web-design pdf -a cursor
        skill-manager remove --all --global --yes
    """
    if not remove_all and not skill_ids:
        console.print("[red]Error:[/red] Give skill ids or --all")
        raise typer.Exit(1)

    settings = get_settings()
    auto_confirm = settings.auto_confirm if yes is None else yes
    message = unwrap(asyncio.run(api.remove_skills(
        skill_ids or [],
        global_=global_,
        agents=agent or [],
        remove_all=remove_all,
        auto_confirm=auto_confirm,
        settings=settings,
    )))
    console.print(f"[green]✓[/green] {message}")


@app.command(name="remove-global")
def remove_global(
    skill_id: str = typer.Argument(..., help="Global skill id to remove"),
):
    """Remove one skill from the shared global directory."""
    settings = get_settings()
    message = unwrap(asyncio.run(api.remove_global_skill(skill_id, settings=settings)))
    console.print(f"[green]✓[/green] {message}")


# =============================================================================
# Bridge & Config Commands
# =============================================================================

@app.command()
def invoke(
    name: str = typer.Argument(..., help=f"Command name: {', '.join(api.command_names())}"),
    args: str = typer.Option("{}", "--args", help="Arguments as a JSON object"),
):
    """
    Run a backend command with JSON arguments and print a JSON result.

    This is the entry point a desktop frontend shells out to.

    Examples:
        skill-manager invoke get_local_skills
        skill-manager invoke uninstall_skill --args '{"id": "pdf", "agents": ["cursor"]}'
    """
    try:
        parsed: Dict[str, Any] = json.loads(args)
    except json.JSONDecodeError as e:
        print_json({"ok": False, "error": f"Invalid JSON arguments: {e}"})
        raise typer.Exit(1)
    if not isinstance(parsed, dict):
        print_json({"ok": False, "error": "Arguments must be a JSON object"})
        raise typer.Exit(1)

    try:
        settings = load_settings()
    except SkillManagerError as e:
        print_json({"ok": False, "error": str(e)})
        raise typer.Exit(1)

    result = api.invoke(name, parsed, settings=settings)
    print_json(result.to_dict())
    if not result.ok:
        raise typer.Exit(1)


@config_app.command("show")
def config_show():
    """Print the effective settings."""
    settings = get_settings()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Key", style="cyan", justify="right")
    table.add_column("Value", style="white")
    for key, value in settings.to_dict().items():
        table.add_row(key, json.dumps(value))

    panel = Panel(
        table,
        title="[bold cyan]Settings[/bold cyan]",
        subtitle=f"[dim]{get_config_path()}[/dim]",
        border_style="cyan",
        padding=(1, 2)
    )
    console.print(panel)


@config_app.command("set")
def config_set(
    key: str = typer.Argument(..., help="Setting name"),
    value: str = typer.Argument(..., help="New value (JSON, or a plain string)"),
):
    """
    Change one setting.

    Examples:
        skill-manager config set auto_confirm false
        skill-manager config set target_agents '["cursor", "claude-code"]'
        skill-manager config set agents '{"zed": ".zed/skills"}'
    """
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError:
        parsed = value

    try:
        update_setting(key, parsed)
    except SkillManagerError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    console.print(f"[green]✓[/green] {key} = {json.dumps(parsed)}")


@config_app.command("path")
def config_path():
    """Print where the settings file lives."""
    console.print(str(get_config_path()))


@app.command()
def version():
    """Display version information."""
    import platform

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Key", style="cyan", justify="right")
    table.add_column("Value", style="white")

    table.add_row("Version", __version__)
    table.add_row("Python", platform.python_version())
    table.add_row("Platform", platform.system())
    table.add_row("Config", str(get_config_path()))

    console.print(table)


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
