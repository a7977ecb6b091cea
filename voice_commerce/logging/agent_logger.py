"""
Agent Logger for Markdown Turn Logs.
Human-readable record of every voice turn for debugging and review.
"""

import asyncio
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


def _ms(value: Optional[float]) -> str:
    return f"{value:.0f}ms" if value is not None else "N/A"


class AgentLogger:
    """
    Markdown logger for conversation turns.

    Documents:
    - Session starts
    - Transcriptions and classified intents
    - Actions taken and products created
    - Errors
    - Stage latencies
    """

    def __init__(self, log_path: str = "logs/agent_log.md"):
        self.log_path = Path(log_path)
        self.log_path.parent.mkdir(parents=True, exist_ok=True)

        self._queue: asyncio.Queue = asyncio.Queue()
        self._writer_task: Optional[asyncio.Task] = None
        self._running = False

        # Start the async writer
        self._start_writer()

    def _start_writer(self):
        """Start the background log writer."""
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            # No event loop, will write synchronously
            return

        self._writer_task = asyncio.create_task(self._write_loop())
        self._running = True

    async def _write_loop(self):
        """Background loop to write logs asynchronously."""
        while self._running:
            try:
                entry = await asyncio.wait_for(self._queue.get(), timeout=1.0)
                self._sync_write(entry)

            except asyncio.TimeoutError:
                continue
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Log writer error: {e}")

    def _sync_write(self, entry: str):
        try:
            with open(self.log_path, "a", encoding="utf-8") as f:
                f.write(entry)
                f.write("\n")
        except OSError as e:
            logger.error(f"Failed to write log: {e}")

    async def _log(self, entry: str):
        """Add a log entry to the queue."""
        if self._running and self._writer_task:
            await self._queue.put(entry)
        else:
            self._sync_write(entry)

    # =========================
    # Public Logging Methods
    # =========================

    async def log_session_start(
        self,
        session_id: str,
        artisan_id: str,
        language: str
    ):
        """Log the first turn of a new session."""
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

        entry = f"""
---

## 🆕 Session Started: `{session_id}`

**Timestamp:** {timestamp}
**Artisan:** `{artisan_id}`
**Language:** {language}

---
"""
        await self._log(entry)

    async def log_turn_complete(
        self,
        session_id: str,
        transcript: str,
        reply: str,
        language: str,
        intent: str,
        confidence: int,
        action: str,
        action_success: bool,
        conversation_turn: int,
        metrics: Dict[str, Any]
    ):
        """Log a complete turn with intent, action and metrics."""
        timestamp = datetime.now().strftime("%H:%M:%S")

        total_latency = metrics.get("total_latency_ms") or 0

        if total_latency < 2000:
            latency_status = "🟢 Fast"
        elif total_latency < 5000:
            latency_status = "🟡 Acceptable"
        else:
            latency_status = "🔴 Slow"

        status = "✅" if action_success else "⚠️"

        entry = f"""### {status} Turn {conversation_turn} | {timestamp}

**Session:** `{session_id}`
**Language:** {language}
**Artisan said:** "{transcript}"
**Intent:** `{intent}` ({confidence}%)
**Action:** `{action}`

> {reply}

| Stage | Latency |
|-------|---------|
| Total | {latency_status} ({total_latency:.0f}ms) |
| STT | {_ms(metrics.get('stt_latency_ms'))} |
| Intent | {_ms(metrics.get('intent_latency_ms'))} |
| Action | {_ms(metrics.get('action_latency_ms'))} |
| Reply | {_ms(metrics.get('response_latency_ms'))} |
| TTS | {_ms(metrics.get('tts_latency_ms'))} |

---
"""
        await self._log(entry)

    async def log_product_created(
        self,
        session_id: str,
        artisan_id: str,
        product: Dict[str, Any]
    ):
        """Log a product persisted by the guided flow."""
        timestamp = datetime.now().strftime("%H:%M:%S")
        product_str = json.dumps(product, indent=2, ensure_ascii=False)

        entry = f"""#### 🛍️ Product Created | {timestamp}

**Session:** `{session_id}`
**Artisan:** `{artisan_id}`

```json
{product_str}
```
"""
        await self._log(entry)

    async def log_error(
        self,
        session_id: str,
        error_type: str,
        error_message: str,
        stack_trace: Optional[str] = None
    ):
        """Log an error."""
        timestamp = datetime.now().strftime("%H:%M:%S")

        entry = f"""### ❌ Error | {timestamp}

**Session:** `{session_id}`
**Type:** `{error_type}`
**Message:** {error_message}
"""

        if stack_trace:
            entry += f"""
<details>
<summary>Stack Trace</summary>

```
{stack_trace}
```

</details>
"""

        await self._log(entry)

    async def log_system_event(
        self,
        event: str,
        details: Dict[str, Any]
    ):
        """Log a system event."""
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

        details_str = ""
        for key, value in details.items():
            details_str += f"- **{key}:** {value}\n"

        entry = f"""### ⚙️ System Event | {timestamp}

**Event:** {event}

{details_str}
---
"""
        await self._log(entry)

    async def initialize_log(self, languages: Optional[Dict[str, str]] = None):
        """Initialize the log file with header."""
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

        language_lines = "\n".join(
            f"- {name} ({code})" for code, name in (languages or {}).items()
        )

        header = f"""# 🎙️ Voice Commerce Turn Log

**Generated:** {timestamp}

---

## System Overview

This log documents voice turns handled by the Voice Commerce Engine.

**Pipeline:** Audio → STT → Intent → Action → Reply → TTS → Audio

**Supported Languages:**
{language_lines}

---

## Turn Log

"""

        # Overwrite file with header
        with open(self.log_path, "w", encoding="utf-8") as f:
            f.write(header)

        logger.info(f"Agent log initialized: {self.log_path}")

    async def close(self):
        """Close the logger and flush pending entries."""
        self._running = False

        if self._writer_task:
            self._writer_task.cancel()
            try:
                await self._writer_task
            except asyncio.CancelledError:
                pass

        # Write any remaining entries
        while not self._queue.empty():
            try:
                entry = self._queue.get_nowait()
                self._sync_write(entry)
            except asyncio.QueueEmpty:
                break

        logger.info("Agent logger closed")
