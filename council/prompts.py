"""Round instructions and the default debate prompt rendering."""

from council.models import DebateContext

SYSTEM_PROMPT = (
    "You are participating in a code review debate. "
    "Analyze the arguments presented and respond with your position."
)

_INDEPENDENT = """State your independent technical analysis based on the code evidence.
Do not be influenced by the number of reviewers holding a position.
Focus solely on technical correctness and code quality."""

_ANTI_CONFORMITY = """IMPORTANT: You are NOT required to change your position to match the majority.

Review the opponent arguments critically:
- If you change your position, you MUST provide specific technical justification
- If you maintain your position, explain what evidence would change your mind
- Evaluate arguments based on technical merit, NOT on how many reviewers agree

Quality over consensus: A single well-supported argument can outweigh multiple weak ones."""

_FINAL_ASSESSMENT = """Final technical assessment:

Summarize:
1. Your final position and confidence level
2. Key technical evidence supporting your conclusion
3. Any remaining uncertainties or edge cases

This is the final round. Make your strongest technical case."""

ROUND_INSTRUCTIONS: dict[int, str] = {
    1: _INDEPENDENT,
    2: _ANTI_CONFORMITY,
}
DEFAULT_ROUND_INSTRUCTION = _FINAL_ASSESSMENT


def round_instruction(round_number: int) -> str:
    return ROUND_INSTRUCTIONS.get(round_number, DEFAULT_ROUND_INSTRUCTION)


def render_debate_prompt(context: DebateContext) -> str:
    """Render a DebateContext into the user prompt sent to a model backend."""
    position = context.position
    previous = ""
    if context.previous_arguments:
        history = "\n".join(f"Round {i}: {arg}" for i, arg in enumerate(context.previous_arguments, start=1))
        previous = f"\n\n## Your Previous Arguments\n{history}"

    return f"""# Code Review Debate - Round {context.round_number}

You are participating in a debate about an issue at {context.location} ({context.category}).

## Your Position
- Severity: {context.current_severity.value.upper()}
- Title: {position.title}
- Description: {position.description or "(none)"}
- Confidence: {context.current_confidence:.2f}

## Anonymous Opponent Positions
{context.opponent_summary or "(no opposing positions)"}{previous}

## Task
{context.instruction}

IMPORTANT: Focus on technical merit, not reviewer identity. Evaluate arguments based on:
- Code-specific evidence
- Technical depth and consequences
- Concrete examples

Reply with:
Severity: CRITICAL, MAJOR, MINOR or NITPICK
Confidence: a number between 0.0 and 1.0
Changed position: yes or no
followed by your argument, referencing the code evidence."""
