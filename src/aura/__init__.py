"""Aura - LLM routing and design reverse-engineering core.

Aura lets an application pick one of several interchangeable LLM providers
for each of its feature modules and run design reverse-engineering analyses
that degrade to a deterministic offline analyzer whenever the live call fails.

Core pieces:
- Settings store: persisted global LLM settings, per-module primary/backup
  routing and reverse-engineering selections
- Prompt builder: system and user prompts for design analysis
- Invocation pipeline: gateway or direct provider call with mock fallback
"""

__version__ = "0.1.0"
__author__ = "Aura Contributors"
