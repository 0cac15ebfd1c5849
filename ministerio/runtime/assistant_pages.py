from __future__ import annotations

import argparse

from ministerio.llm.chat import ChatTranscript
from ministerio.llm.gemini_text import GenerationResult
from ministerio.runtime.context import AppContext, Console


EXIT_WORDS = {"salir", "exit", "quit"}


def register_assistant(sub: argparse._SubParsersAction) -> None:
    ideas_p = sub.add_parser("ideas", help="Ideas de presentaciones para el ministerio")
    ideas_p.add_argument("topic", nargs="*", help="Ej. El sufrimiento, La familia, Noticias recientes...")

    sub.add_parser("chat", help="Chat con el asistente (escribe 'salir' para terminar)")


def render_result(con: Console, result: GenerationResult) -> None:
    con.say(result.text.strip())
    sources = [s for s in result.grounding if s.uri]
    if sources:
        con.say()
        con.say("Fuentes:")
        for src in sources:
            con.say(f"  - {src.title or src.uri}: {src.uri}")


def run_ideas(ctx: AppContext, ns: argparse.Namespace) -> int:
    topic = " ".join(ns.topic).strip() or ctx.console.ask("Tema: ")
    if not topic:
        ctx.console.warn("Indica un tema.")
        return 1
    render_result(ctx.console, ctx.gemini.generate_presentations(topic))
    return 0


def run_chat(ctx: AppContext, ns: argparse.Namespace) -> int:
    con = ctx.console
    transcript = ChatTranscript(ctx.gemini)
    con.say(transcript.messages[0].text)

    while True:
        try:
            text = con.ask("\n> ")
        except EOFError:
            break
        if text.lower() in EXIT_WORDS:
            break
        reply = transcript.send(text)
        if reply is None:
            continue
        con.say()
        render_result(con, GenerationResult(text=reply.text, grounding=reply.grounding))
    return 0
