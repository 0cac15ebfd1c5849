from __future__ import annotations

import asyncio
import logging

from ministerio.llm.gemini_live import VoiceSession, VoiceState
from ministerio.runtime.context import AppContext, Console


logger = logging.getLogger(__name__)

STATUS_TEXT = {
    VoiceState.CONNECTING: "Conectando...",
    VoiceState.CONNECTED: "Escuchando... (pulsa Enter para terminar)",
    VoiceState.DISCONNECTED: "Desconectado.",
}


async def run_voice_session(con: Console, session: VoiceSession) -> str | None:
    """Run one conversation until Enter or until the server ends it.

    Returns the session's error message, if any.
    """

    async with session:
        if session.state is VoiceState.CONNECTED:
            enter = asyncio.create_task(con.wait_for_enter())
            closed = asyncio.create_task(session.wait_closed())
            await asyncio.wait({enter, closed}, return_when=asyncio.FIRST_COMPLETED)
            for task in (enter, closed):
                task.cancel()
    return session.error_message


def run_voice(ctx: AppContext) -> int:
    con = ctx.console
    session = VoiceSession(
        live=ctx.cfg.live,
        api_key=ctx.cfg.gemini.require_api_key(),
        audio=ctx.cfg.audio,
        on_state_change=lambda state: con.say(STATUS_TEXT[state]),
    )
    error = asyncio.run(run_voice_session(con, session))
    if error:
        con.warn(error)
        return 1
    return 0
