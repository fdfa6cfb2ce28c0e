"""
Recall - review scheduling and answer evaluation engine.

Packages:
- cards: authored card definitions, presentation views, region geometry
- evaluation: correctness verdicts for submitted responses
- sm2: review state, SM-2 scheduler, frequency modulator, persistence
- due_set: study queue selection
- analytics: session tallies and review dashboards
"""
