"""
Script: image_publisher package
What: Publishes multi-arch container images for every supported upstream release.
Doing: Groups version discovery, registry checks, build orchestration, and the CLI in one importable package.
Why: Keeps the publish flow readable and testable instead of living in one long shell script.
Goal: Provide a clear, maintainable home for release image build and push logic.
"""
