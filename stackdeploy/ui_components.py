"""
stackdeploy - UI Components
Standardized headers and deployment summaries
"""

from typing import Optional

from rich.console import Console

from stackdeploy.models.deployment import DeploymentResult

LOGO = "stackdeploy"

# Color scheme
BRAND_COLOR = "color(214)"
SUCCESS_COLOR = "green"
WARNING_COLOR = "yellow"
ERROR_COLOR = "red"


def show_header(
    title: str,
    subtitle: Optional[str] = None,
    details: Optional[dict] = None,
    console: Optional[Console] = None,
):
    """
    Display a standardized command header.

    Args:
        title: Main title (e.g., "Deploy", "Destroy")
        subtitle: Optional subtitle line
        details: Additional key-value pairs to display
        console: Rich Console instance (creates new if None)
    """
    if console is None:
        console = Console()

    prefix = f" [bold {BRAND_COLOR}]{LOGO}[/bold {BRAND_COLOR}] [dim]›[/dim]"

    console.print(f"{prefix} [bold white]{title}[/bold white]")

    if subtitle:
        console.print(f"{prefix} [dim]{subtitle}[/dim]")

    if details:
        for key, value in details.items():
            console.print(f"{prefix} {key}: [cyan]{value}[/cyan]")

    console.print()


def show_deployment_summary(result: DeploymentResult, console: Optional[Console] = None):
    """
    Print the endpoint report after a successful deployment.

    Args:
        result: Successful apply result
        console: Rich Console instance (creates new if None)
    """
    if console is None:
        console = Console()

    console.print()
    console.print("[bold green]🎉 DEPLOYMENT COMPLETE![/bold green]")
    console.print("[dim]" + "-" * 48 + "[/dim]")
    if result.host:
        console.print(f"Droplet: [cyan]{result.host.address}[/cyan]")
    for endpoint in result.endpoints:
        console.print(f"  [cyan]{endpoint}[/cyan]")
    if not result.ssl_enabled:
        mode = "unknown"
        if result.certificate and result.certificate.mode:
            mode = result.certificate.mode.value
        console.print(
            f"[{WARNING_COLOR}]⚠ SSL not enabled (certificate mode: {mode}). "
            f"Set CERTBOT_MODE=staging or production and rerun.[/{WARNING_COLOR}]"
        )
    console.print("[dim]" + "-" * 48 + "[/dim]")
