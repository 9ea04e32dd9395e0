"""Job orchestration: batching, dispatch, throttling and progress accounting."""
