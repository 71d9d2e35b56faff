import asyncio
from typing import Any, Dict

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config.settings import get_settings
from .integrations.fusionauth import get_client_factory
from .integrations.mock_fusionauth import MockFusionAuth
from .models.organization import ProvisioningFailure
from .provisioning.workflow import OrganizationProvisioningWorkflow, ProvisioningOutcome
from .utils.telemetry import setup_logging


console = Console()


class OrgSignupCLI:
    def __init__(self, settings=None, clients=None):
        self.settings = settings or get_settings()
        self.logger = setup_logging(self.settings)
        self.clients = clients or get_client_factory(self.settings)
        self.workflow = OrganizationProvisioningWorkflow(self.clients, self.settings)
        self.mock_mode = isinstance(self.clients, MockFusionAuth)

    def display_banner(self):
        banner = """
╔══════════════════════════════════════════════════════════════╗
║   Organization Sign-up                                       ║
║   Tenant provisioning on FusionAuth                          ║
╚══════════════════════════════════════════════════════════════╝
        """
        console.print(Panel(banner, style="bold cyan"))

    def display_menu(self):
        console.print("\n[bold]Commands:[/bold]")
        console.print("  1. provision - Provision a new organization")
        console.print("  2. settings - Show effective settings")
        console.print("  3. exit - Exit the CLI\n")

    def show_settings(self):
        table = Table(title="Effective Settings", show_header=True, header_style="bold magenta")
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="green")

        for name, value in self.settings.model_dump().items():
            if name == "FUSIONAUTH_API_KEY" and value:
                value = "********"
            table.add_row(name, str(value))

        console.print(table)

    async def provision_organization(self, fields: Dict[str, Any]) -> ProvisioningOutcome:
        outcome = await self.workflow.run(fields)

        if isinstance(outcome, ProvisioningFailure):
            console.print(f"\n[red]Provisioning failed at {outcome.step.value} ({outcome.status_code})[/red]")
            console.print(f"[red]Message:[/red] {outcome.message}")
            if outcome.compensated:
                console.print(f"[yellow]Cleaned up:[/yellow] {', '.join(outcome.compensated)}")
            return outcome

        console.print(f"\n[green]Organization:[/green] {outcome.organization}")
        console.print(f"[green]Tenant ID:[/green] {outcome.tenant_id}")
        console.print(f"[green]Application ID:[/green] {outcome.application_id}")
        console.print(f"[green]Sign-in:[/green] {self.settings.REDIRECT_SCHEME}://{outcome.redirect_target}")
        return outcome

    async def demo_provision(self):
        console.print("\n[bold cyan]Provision Organization[/bold cyan]")
        fields = {
            "organization": console.input("[bold]Organization name: [/bold]").strip(),
            "email": console.input("[bold]Admin email: [/bold]").strip(),
            "password": console.input("[bold]Password: [/bold]", password=True),
        }
        await self.provision_organization(fields)

    async def run(self):
        self.display_banner()

        if self.mock_mode:
            console.print("[yellow]Running in MOCK MODE - set IDENTITY_PROVIDER=fusionauth to provision for real[/yellow]\n")

        while True:
            self.display_menu()

            choice = console.input("[bold cyan]Enter command: [/bold cyan]").strip()

            try:
                if choice == "1" or choice.lower() == "provision":
                    await self.demo_provision()
                elif choice == "2" or choice.lower() == "settings":
                    self.show_settings()
                elif choice == "3" or choice.lower() == "exit":
                    console.print("\n[cyan]Goodbye![/cyan]")
                    break
                else:
                    console.print("[red]Invalid choice. Please try again.[/red]")

            except Exception as e:
                console.print(f"[red]Error: {str(e)}[/red]")
                self.logger.error(f"CLI error: {str(e)}", exc_info=True)


def main():
    cli = OrgSignupCLI()
    asyncio.run(cli.run())


if __name__ == "__main__":
    main()
