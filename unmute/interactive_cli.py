#!/usr/bin/env python3
"""Interactive terminal front end for UnMute.

This allows users to:
1. File a complaint by typing it or speaking into the microphone
2. Log in as a committee member and work the dashboard
3. Ask the support assistant questions
"""
import asyncio
import logging
import sys
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich import box
from rich.prompt import Prompt

from ai_gateway import TranscriptionError
from config import config
from controller import ReportingController
from recorder import MicrophoneUnavailable, Recorder
from schemas import ComplaintStatus, StatusFilter
from store import ComplaintNotFound

logging.basicConfig(
    level=logging.WARNING,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

console = Console()


class InteractiveReportingApp:
    """Menu-driven student, admin and assistant views over one controller."""

    def __init__(self, controller: ReportingController = None, recorder: Recorder = None):
        self.controller = controller or ReportingController()
        self.recorder = recorder or Recorder()
        self.status_filter = StatusFilter.ALL

    # ------------------------------------------------------------------
    # Student
    # ------------------------------------------------------------------

    async def submit_typed(self):
        text = Prompt.ask("Describe what happened")
        if not text.strip():
            console.print("[red]⚠️  Complaint cannot be empty[/red]")
            return

        await self.controller.submit_text(text)
        self.display_submitted()

    async def submit_spoken(self):
        try:
            self.recorder.start()
        except MicrophoneUnavailable as e:
            console.print(f"[bold red]{e}[/bold red]")
            return

        console.print("[red]● Recording...[/red] press Enter to stop")
        await asyncio.to_thread(input)
        clip = self.recorder.stop()

        console.print("[yellow]Processing...[/yellow]")
        try:
            await self.controller.submit_audio(clip)
        except TranscriptionError:
            console.print(f"[bold red]{self.controller.notices[-1]}[/bold red]")
            return

        self.display_submitted()

    def display_submitted(self):
        panel = Panel(
            "Your identity is completely hidden. The committee will review this shortly.",
            title="Report Submitted Anonymously",
            border_style="bold green",
            box=box.ROUNDED,
            padding=(1, 2)
        )
        console.print(panel)

    async def student_menu(self):
        while True:
            choice = Prompt.ask(
                "\n[bold]Student[/bold] - [t]ype report, [r]ecord report, [b]ack",
                choices=["t", "r", "b"],
                default="t"
            )
            if choice == "b":
                return
            if choice == "t":
                await self.submit_typed()
            else:
                await self.submit_spoken()

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    def login(self):
        console.print(Panel(
            "Create a profile to access the anti-ragging dashboard and manage reports.",
            title="Committee Access",
            border_style="bold blue"
        ))
        name = Prompt.ask("Full name")
        role = Prompt.ask("Role", choices=config.ADMIN_ROLES, default=config.ADMIN_ROLES[0])
        department = Prompt.ask("Department / Block")

        try:
            profile = self.controller.login(name, role, department)
        except ValueError as e:
            console.print(f"[red]⚠️  Invalid profile: {e}[/red]")
            return False

        console.print(f"\n[bold]Welcome, {profile.name}[/bold] [dim]({profile.role.value}, {profile.department})[/dim]")
        return True

    def display_dashboard(self):
        complaints = self.controller.complaints(self.status_filter)

        table = Table(
            title=f"📋 Incoming Reports ({self.status_filter.value})",
            box=box.ROUNDED,
            show_header=True,
            header_style="bold magenta"
        )
        table.add_column("#", style="dim", width=3)
        table.add_column("Status", width=9)
        table.add_column("Category", style="cyan", width=14)
        table.add_column("Received", width=16)
        table.add_column("Report", style="green")

        for index, complaint in enumerate(complaints, start=1):
            status_style = "green" if complaint.status == ComplaintStatus.RESOLVED else "yellow"
            content = complaint.content
            if complaint.is_audio:
                content = f"🎤 {content}"
            table.add_row(
                str(index),
                f"[{status_style}]{complaint.status.value}[/{status_style}]",
                complaint.category,
                complaint.timestamp.strftime("%Y-%m-%d %H:%M"),
                content
            )

        if not complaints:
            console.print("[dim]No reports found.[/dim]")
        else:
            console.print(table)
        return complaints

    def pick(self, complaints):
        if not complaints:
            return None
        index = Prompt.ask("Report #", default="1")
        try:
            return complaints[int(index) - 1]
        except (ValueError, IndexError):
            console.print("[red]⚠️  No such report[/red]")
            return None

    async def analyze(self, complaint):
        console.print("[yellow]Analyzing...[/yellow]")
        updated = await self.controller.request_analysis(complaint.id)
        if updated is None:
            console.print("[dim]Analysis already in progress for this report[/dim]")
            return
        console.print(Panel(
            updated.ai_analysis,
            title="AI Severity Analysis",
            border_style="bold magenta",
            padding=(1, 2)
        ))

    async def search(self):
        query = Prompt.ask("Search resources (e.g. Anti-ragging helpline number)")
        result = await self.controller.search_resources(query)
        if result is None:
            return

        body = result.text or "[dim]No results.[/dim]"
        if result.links:
            body += "\n\n[bold]Sources:[/bold]\n" + "\n".join(f"  • {link}" for link in result.links)
        console.print(Panel(body, title="Legal & Helpline Resources", border_style="cyan", padding=(1, 2)))

    async def admin_menu(self):
        if not self.controller.logged_in and not self.login():
            return

        while True:
            complaints = self.display_dashboard()
            choice = Prompt.ask(
                "\n[f]ilter, [t]oggle resolved, [a]nalyze, [s]peak, [r]esources, [l]ogout, [b]ack",
                choices=["f", "t", "a", "s", "r", "l", "b"],
                default="b"
            )

            if choice == "b":
                return
            if choice == "l":
                self.controller.logout()
                console.print("[cyan]Logged out[/cyan]")
                return
            if choice == "f":
                value = Prompt.ask("Show", choices=[f.value for f in StatusFilter], default="ALL")
                self.status_filter = StatusFilter(value)
            elif choice == "r":
                await self.search()
            else:
                complaint = self.pick(complaints)
                if complaint is None:
                    continue
                try:
                    if choice == "t":
                        updated = self.controller.toggle_resolution(complaint.id)
                        console.print(f"[green]Marked {updated.status.value}[/green]")
                    elif choice == "a":
                        await self.analyze(complaint)
                    elif not await self.controller.read_aloud(complaint.id):
                        console.print("[dim]Audio unavailable[/dim]")
                except ComplaintNotFound:
                    console.print("[red]⚠️  Report no longer exists[/red]")

    # ------------------------------------------------------------------
    # Assistant
    # ------------------------------------------------------------------

    async def chat(self):
        console.print(Panel(
            self.controller.chat_messages[-1].text,
            title="🤖 AI Support Assistant",
            border_style="bold blue"
        ))
        while True:
            text = Prompt.ask("[bold]You[/bold] (empty to go back)", default="")
            if not text.strip():
                return
            reply = await self.controller.send_chat(text)
            console.print(f"[bold blue]Assistant:[/bold blue] {reply.text}")

    def display_welcome(self):
        """Display welcome message."""
        welcome = """
[bold cyan]UnMute[/bold cyan]
[dim]Speak up safely. Report ragging anonymously.[/dim]

  • Student: file a report by typing or speaking
  • Admin: review, resolve and analyze reports
  • Assistant: ask about anti-ragging laws and staying safe
        """

        panel = Panel(
            welcome,
            border_style="bold blue",
            box=box.DOUBLE,
            padding=(1, 2)
        )

        console.print(panel)
        if not self.controller.gateway.available:
            console.print("[yellow]⚠️  AI provider not configured, AI features will use fallbacks[/yellow]")
        console.print()

    async def run_interactive(self):
        """Run the interactive CLI loop."""
        self.display_welcome()

        while True:
            choice = Prompt.ask(
                "\n[s]tudent, [a]dmin, [c]hat, [q]uit",
                choices=["s", "a", "c", "q"],
                default="s"
            )
            if choice == "q":
                console.print("\n[cyan]Goodbye![/cyan]\n")
                break
            if choice == "s":
                await self.student_menu()
            elif choice == "a":
                await self.admin_menu()
            else:
                await self.chat()

        await self.controller.close()


async def main():
    """Main entry point."""
    app = InteractiveReportingApp()

    try:
        await app.run_interactive()
    except KeyboardInterrupt:
        console.print("\n\n[cyan] Goodbye![/cyan]\n")
        sys.exit(0)


if __name__ == "__main__":
    asyncio.run(main())
