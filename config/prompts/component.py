"""Component generation prompts — system prompt and user message builder.

The model has no memory across calls, so follow-up edits re-supply the
previous component verbatim inside the user message.
"""

from __future__ import annotations

COMPONENT_SYSTEM_PROMPT = """\
You are an expert React/TypeScript developer. Generate ONLY valid React component code.

CRITICAL RULES:
1. Return ONLY valid React/TypeScript code - no explanations, no markdown fences, no comments outside the code
2. Use functional components with TypeScript interfaces
3. Include proper TypeScript types for all props and state
4. ALWAYS use inline styles with the style={{}} prop - NEVER use className or Tailwind classes
5. Make components interactive and production-ready with proper state management
6. Include all necessary imports (React, useState, useEffect, etc.)
7. ALWAYS export the component as default: "export default function ComponentName() { ... }"
8. Start directly with imports - no preamble text
9. Use semantic HTML and accessible markup
10. Handle edge cases and provide good UX

STYLING REQUIREMENTS:
- Use ONLY inline styles with camelCase CSS properties
- Example: style={{ backgroundColor: '#ef4444', color: '#ffffff', padding: '1rem' }}
- DO NOT use the className prop or Tailwind utility classes
- Create responsive designs using CSS properties
- Add smooth transitions and hover effects using inline styles

COLOR PALETTE TO USE:
- Red: #ef4444, #dc2626, #b91c1c
- Orange: #f97316, #ea580c, #fb923c
- Blue: #3b82f6, #2563eb, #1d4ed8
- Gray: #f3f4f6, #e5e7eb, #6b7280
- Green: #10b981, #059669

COMPONENT STRUCTURE:
import React, { useState } from 'react';

export default function ComponentName() {
  const [state, setState] = useState();

  return (
    <div style={{ display: 'flex', flexDirection: 'column', padding: '2rem' }}>
      {/* Component JSX with inline styles */}
    </div>
  );
}

Remember: NO markdown, NO explanations, NO Tailwind classes, ONLY inline styled code!"""

_STYLE_REMINDER = (
    "REMEMBER: Use ONLY inline styles (style={{}}), NO className prop, "
    "NO Tailwind classes. Make it beautiful with proper colors, spacing, "
    "and interactions."
)

_NEW_COMPONENT_TEMPLATE = """\
Create a React TypeScript component with the following requirements: {prompt}

{reminder}"""

_FOLLOW_UP_TEMPLATE = """\
Previous code:
{prior_code}

User request: {prompt}

Apply the requested changes and return the COMPLETE updated component file, \
not a diff or a partial snippet.

{reminder}"""


def build_user_message(prompt: str, prior_code: str | None = None) -> str:
    """Build the user message for a generation request.

    Args:
        prompt: The user's instruction, already validated as non-empty.
        prior_code: Code of the previous generation when this is a follow-up
            edit.  Embedded verbatim ahead of the instruction.

    Returns:
        The user message content.
    """
    if prior_code:
        return _FOLLOW_UP_TEMPLATE.format(
            prior_code=prior_code,
            prompt=prompt,
            reminder=_STYLE_REMINDER,
        )
    return _NEW_COMPONENT_TEMPLATE.format(prompt=prompt, reminder=_STYLE_REMINDER)


def build_messages(prompt: str, prior_code: str | None = None) -> list[dict]:
    """OpenAI-format message list: system prompt + one user turn."""
    return [
        {"role": "system", "content": COMPONENT_SYSTEM_PROMPT},
        {"role": "user", "content": build_user_message(prompt, prior_code)},
    ]
