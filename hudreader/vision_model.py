"""
Vision model client for HUD Reader.

Uses Anthropic's Claude API to read the simulator HUD from a frame. The
model is asked to answer with a GOLF_DATA: block, and is also offered the
extract_shot_data tool. Each response is converted to a ModelContent and
published on a LiveContentStream, where the tracker parses it like any
other model turn.
"""

import base64
import logging
from typing import Optional

import anthropic
import cv2
import numpy as np

from hudreader.live_stream import ContentPart, LiveContentStream, ModelContent

logger = logging.getLogger(__name__)

MODEL = "claude-sonnet-4-20250514"

EXTRACT_SHOT_DATA_TOOL = {
    "name": "extract_shot_data",
    "description": (
        "Extracts numerical golf shot data from the simulator display "
        "when new shot data is shown"
    ),
    "input_schema": {
        "type": "object",
        "properties": {
            "ball_speed": {"type": "number", "description": "Ball speed in mph"},
            "club_head_speed": {
                "type": "number", "description": "Club head speed in mph",
            },
            "smash_factor": {
                "type": "number",
                "description": "Smash factor (ball speed / club head speed)",
            },
            "launch_angle": {
                "type": "number", "description": "Launch angle in degrees",
            },
            "carry_distance": {
                "type": "number", "description": "Carry distance in yards",
            },
            "total_distance": {
                "type": "number", "description": "Total distance in yards",
            },
            "spin_rate": {"type": "number", "description": "Spin rate in RPM"},
            "club_type": {
                "type": "string",
                "description": "Type of golf club used (Driver, 7 Iron, Wedge, etc.)",
            },
            "side": {
                "type": "string",
                "enum": ["left", "center", "right"],
                "description": "Shot direction: left, right, or center",
            },
        },
        "required": [],
    },
}

PROMPT = (
    "This is a frame from a golf simulator. The shot data panel is in the "
    "top-left corner. If it shows shot data, reply in exactly this format, "
    "one metric per line, omitting any metric you cannot read:\n\n"
    "GOLF_DATA:\n"
    "Ball Speed: <mph>\n"
    "Club Speed: <mph>\n"
    "Carry: <yards>\n"
    "Total: <yards>\n"
    "Spin Rate: <rpm>\n"
    "Launch Angle: <degrees>\n\n"
    "If no shot data is visible, say so in one sentence and do not "
    "include GOLF_DATA:."
)


class VisionModelClient:
    """Claude-powered HUD reader.

    Attributes:
        client: Anthropic API client.
        stream: Stream the converted responses are published on.
    """

    def __init__(self, stream: LiveContentStream,
                 api_key: Optional[str] = None,
                 model: str = MODEL,
                 use_tools: bool = False):
        """
        Args:
            stream: Content stream to publish model turns on.
            api_key: Anthropic API key. If None, uses ANTHROPIC_API_KEY env var.
            model: Claude model name.
            use_tools: Offer the extract_shot_data tool alongside the
                       GOLF_DATA: text format.
        """
        if api_key:
            self.client = anthropic.Anthropic(api_key=api_key)
        else:
            self.client = anthropic.Anthropic()  # Uses env var
        self.stream = stream
        self.model = model
        self.use_tools = use_tools

    def analyze_frame(self, frame: np.ndarray,
                      prompt: str = PROMPT,
                      tools: Optional[list] = None) -> ModelContent:
        """Send a frame to Claude and publish the answer on the stream.

        Args:
            frame: BGR frame to analyze.
            prompt: Instruction sent with the frame.
            tools: Tool definitions to offer. None means extract_shot_data
                   when `use_tools` is set, otherwise no tools.

        Raises:
            anthropic.APIError: The API call failed.
        """
        content = [
            {
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": "image/jpeg",
                    "data": self._frame_to_base64(frame),
                },
            },
            {"type": "text", "text": prompt},
        ]

        if tools is None:
            tools = [EXTRACT_SHOT_DATA_TOOL] if self.use_tools else []
        kwargs = {}
        if tools:
            kwargs["tools"] = tools

        response = self.client.messages.create(
            model=self.model,
            max_tokens=300,
            messages=[{"role": "user", "content": content}],
            **kwargs,
        )
        tokens = response.usage.input_tokens + response.usage.output_tokens
        logger.info(f"Model answered ({tokens} tokens)")

        turn = self._to_model_content(response)
        self.stream.publish(turn)
        return turn

    @staticmethod
    def _to_model_content(response) -> ModelContent:
        """Convert Messages API content blocks into a ModelContent."""
        parts = []
        for block in response.content:
            if block.type == "text":
                parts.append(ContentPart(text=block.text))
            elif block.type == "tool_use":
                parts.append(ContentPart(
                    tool_name=block.name, tool_input=dict(block.input),
                ))
        return ModelContent(parts=tuple(parts))

    def _frame_to_base64(self, frame: np.ndarray) -> str:
        """Encode an OpenCV frame as base64 JPEG."""
        _, buffer = cv2.imencode(
            '.jpg', frame, [cv2.IMWRITE_JPEG_QUALITY, 80]
        )
        return base64.b64encode(buffer).decode('utf-8')
