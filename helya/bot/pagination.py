"""
EmbedPaginator — previous/next buttons over a list of embeds.

Only the user who ran the command can turn pages. Button presses are
acknowledged by editing the message in place. After ``timeout`` seconds
without a press the buttons are disabled.
"""

from __future__ import annotations

import discord

from helya.config.logging import get_logger

logger = get_logger(__name__)


class EmbedPaginator(discord.ui.View):
    """
    Args:
        pages: Embeds to page through (at least one)
        author_id: Discord user allowed to press the buttons
        timeout: Seconds of inactivity before the buttons are disabled
    """

    def __init__(
        self,
        pages: list[discord.Embed],
        *,
        author_id: int,
        timeout: float = 30.0,
    ) -> None:
        if not pages:
            raise ValueError("EmbedPaginator needs at least one page")
        super().__init__(timeout=timeout)
        self.pages = pages
        self.author_id = author_id
        self.index = 0
        self.message: discord.Message | None = None
        self._sync_buttons()

    @property
    def current(self) -> discord.Embed:
        return self.pages[self.index]

    def _sync_buttons(self) -> None:
        self.previous_page.disabled = self.index == 0
        self.next_page.disabled = self.index >= len(self.pages) - 1

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        if interaction.user.id != self.author_id:
            await interaction.response.send_message(
                "Only the person who ran this command can turn pages.",
                ephemeral=True,
            )
            return False
        return True

    async def _show(self, interaction: discord.Interaction, index: int) -> None:
        self.index = max(0, min(index, len(self.pages) - 1))
        self._sync_buttons()
        await interaction.response.edit_message(embed=self.current, view=self)

    @discord.ui.button(label="◀", style=discord.ButtonStyle.secondary)
    async def previous_page(self, interaction: discord.Interaction, button: discord.ui.Button) -> None:
        await self._show(interaction, self.index - 1)

    @discord.ui.button(label="▶", style=discord.ButtonStyle.secondary)
    async def next_page(self, interaction: discord.Interaction, button: discord.ui.Button) -> None:
        await self._show(interaction, self.index + 1)

    async def send(self, interaction: discord.Interaction) -> None:
        """Send the first page as a followup to a deferred interaction."""
        if len(self.pages) == 1:
            self.stop()
            await interaction.followup.send(embed=self.current)
            return
        self.message = await interaction.followup.send(embed=self.current, view=self, wait=True)

    async def on_timeout(self) -> None:
        for item in self.children:
            if isinstance(item, discord.ui.Button):
                item.disabled = True
        if self.message is None:
            return
        try:
            await self.message.edit(view=self)
        except discord.HTTPException as e:
            logger.debug(f"Could not disable pagination buttons: {e}")
