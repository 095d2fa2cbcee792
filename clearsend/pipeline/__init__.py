"""
Recipient-cleaning pipeline.

Modules:
- address.py: recipient string parsing and collation keys
- domains.py: internal-domain matching and external flagging
- typos.py: provider-domain typo suggestions
- validation.py: ordered address format rules
- steps.py: the six cleaning steps
- orchestrator.py: runs an ordered subset of steps and keeps the audit log
"""
