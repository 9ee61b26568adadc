"""Hook-call analysis: call sites, dependency sets, reconciliation, diagnostics."""
