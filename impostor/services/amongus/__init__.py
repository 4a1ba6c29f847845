"""
Impostor - Among Us Sessions
============================

Structure:
    - models.py: Sessions, session channels and their enums
    - membership.py: In-memory voice channel membership index
    - platform.py: Discord calls used by the session core
    - channels.py: Channel allocation and teardown
    - reconciler.py: Moving members between talking and silence channels
    - presenter.py: Status message embeds
    - state_machine.py: Session lifecycle transitions
    - parser.py: Text command parsing
    - runner.py: Game client process and its event stream
    - service.py: Service wiring everything to bot events
"""
