"""Recovery Companion: local rule-based recovery chat engine and API.

The dialogue engine is importable without the web layer:

    from companion.agent.dialogue_engine import DialogueEngine
    engine = DialogueEngine()
    engine.reply("I have a craving", streak=15, name="Alex", conversation_id="user-42")
"""

__version__ = "0.1.0"
