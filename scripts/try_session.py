import asyncio
import os
import sys

# Add project root to path so we can import agrivoice
sys.path.append(os.getcwd())

from agrivoice.config.dependencies import get_session_pipeline
from agrivoice.pipelines.session import SessionTimeoutError


async def main():
    pipeline = get_session_pipeline()

    file_path = "out.mp3"
    language = "en"
    if len(sys.argv) > 1:
        file_path = sys.argv[1]
    if len(sys.argv) > 2:
        language = sys.argv[2]

    if not os.path.exists(file_path):
        print(f"File '{file_path}' not found. Please provide a path to an audio file.")
        print("Usage: python scripts/try_session.py [path/to/audio.mp3] [en|hi|te]")
        return

    print(f"Reading {file_path}...")
    with open(file_path, "rb") as f:
        audio_bytes = f.read()

    receipt = await pipeline.submit(audio_bytes, language, content_type="audio/mpeg")
    print(f"Submitted session {receipt.session_id}; waiting for the answer...")

    try:
        snapshot = await pipeline.await_completion(receipt.session_id)
    except SessionTimeoutError as e:
        print(f"\nGave up waiting: {e}")
        await pipeline.shutdown(0)
        return

    print("\n--- Session Result ---")
    print(f"status:     {snapshot.status.value}")
    print(f"transcript: {snapshot.transcript}")
    print(f"answer:     {snapshot.answer_text}")
    print(f"audio:      {(snapshot.answer_audio_url or '')[:80]}")
    if snapshot.failure_reason:
        print(f"failure:    {snapshot.failure_reason}")
    print("----------------------")


if __name__ == "__main__":
    asyncio.run(main())
