"""Prompts used by every specialized agent."""

TASK_EXECUTION_PROMPT = """You are {name}.

Current task: {task}

Context: {context}

Available tools: {tools}

Recent tool calls: {recent_tool_calls}

## Your Task

Execute this task by:
1. Reasoning about the best approach
2. Deciding which tools to call and in what order
3. Planning the parameters for each tool call
4. Producing a result

Be autonomous and decisive.

## Output Format

Respond with a JSON object:
{{
  "reasoning": "your thought process",
  "toolCalls": [{{"tool": "tool_name", "params": {{"param_name": "value"}}}}],
  "result": {{"key": "value"}},
  "nextSteps": "what should happen next"
}}
"""

TASK_BREAKDOWN_PROMPT = """You are {name}, an AI agent with the following role: {role}

Your capabilities: {capabilities}

Available tools: {tools}

Goal: {goal}

Previous conversation:
{history}

## Your Task

Break this goal down into actionable tasks. Each task should be specific and measurable,
name the tools it needs, declare its dependencies by task id, and carry a priority.
"""

CHAT_SYSTEM_PROMPT = """You are {name}, {role}.

Your capabilities: {capabilities}

Long-term memory:
- Known facts: {facts}
- Preferences: {preferences}
- Learnings: {learnings}

Recent thoughts:
{thoughts}

Context: {context}

{system_instruction}
"""

LEARNING_PROMPT = """Feedback: {feedback}

Context: {context}

Current knowledge: {knowledge}

## Your Task

Extract key facts, user preferences and learnings from this feedback.

## Output Format

Respond with a JSON object:
{{
  "facts": ["fact", "..."],
  "preferences": {{"key": "value"}},
  "learnings": ["learning", "..."]
}}
"""
