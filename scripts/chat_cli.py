#!/usr/bin/env python3
"""Interactive CLI for a live assistant session.

Type messages to chat in text mode. Voice mode streams your microphone to the
model and plays spoken replies through the default output device.

Commands: /voice, /text, /talk (start/stop recording), /voice-name NAME,
/state, /clear, /quit
"""

import asyncio

from liveassist.config import get_settings
from liveassist.core import AssistantRuntime, SessionState, UIMode
from liveassist.logging_config import setup_logging


def print_state(state: SessionState) -> None:
    print(
        f"\n  📊 {state.ui_mode.value} | {state.connection_status.value} | "
        f"voice={state.voice_state.value} recording={state.is_recording} "
        f"messages={len(state.messages)}"
    )
    if state.last_error:
        print(f"  ❌ {state.last_error}")


def make_renderer():
    """Print each finished assistant message once."""
    printed: set[str] = set()

    def render(state: SessionState) -> None:
        for message in state.messages:
            if message.id in printed:
                continue
            printed.add(message.id)
            if message.role.value == "assistant":
                if message.text:
                    print(f"\n🤖 Assistant: {message.text}\n")
                elif message.audio:
                    print(f"\n🔊 Assistant spoke ({len(message.audio)} bytes)\n")

    return render


async def read_line(prompt: str) -> str:
    return (await asyncio.to_thread(input, prompt)).strip()


async def main():
    settings = get_settings()
    setup_logging(level="WARNING")

    print("=" * 60)
    print("🎙️  LiveAssist - Test CLI")
    print("=" * 60)
    print("\nCommands: /voice, /text, /talk, /voice-name NAME, /mic, /state, /clear, /quit\n")

    async with AssistantRuntime(settings, user_id="cli") as runtime:
        session = runtime.orchestrator
        session.subscribe(make_renderer())
        await session.switch_to_text_mode()

        while True:
            user_input = await read_line("👤 You: ")
            if not user_input:
                continue

            command = user_input.lower()
            if command == "/quit":
                print("\n👋 Goodbye!")
                break
            if command == "/state":
                print_state(session.state)
                continue
            if command == "/clear":
                session.clear_conversation()
                continue
            if command == "/voice":
                await session.switch_to_voice_mode()
                print("🎙️  Voice mode. Use /talk to start and stop recording.")
                continue
            if command == "/text":
                await session.switch_to_text_mode()
                continue
            if command.startswith("/voice-name"):
                try:
                    voice = session.set_voice_name(user_input.split(maxsplit=1)[1])
                    print(f"🔈 Voice {voice.value} will be used on the next connection")
                except (IndexError, ValueError) as e:
                    print(f"❌ {e}")
                continue
            if command == "/mic":
                granted = await session.request_microphone_permission()
                print("🎤 Microphone ready" if granted else "❌ Microphone still unavailable")
                continue
            if command == "/talk":
                if session.state.is_recording:
                    session.stop_voice_recording()
                    print("⏹️  Recording stopped")
                elif session.state.ui_mode != UIMode.VOICE:
                    print("Switch to /voice first")
                elif await session.start_voice_recording():
                    print("⏺️  Recording... /talk again to stop")
                else:
                    print_state(session.state)
                continue

            if not await session.send_text_message(user_input):
                print_state(session.state)


if __name__ == "__main__":
    asyncio.run(main())
