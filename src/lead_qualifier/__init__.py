"""Lead Qualification Analysis & Reporting Engine.

This package scores prospective business leads with a generative language
model, stores the resulting qualification records per owner, classifies
each lead's key business need and renders roll-up reports for email
delivery.
"""

__version__ = "0.1.0"
