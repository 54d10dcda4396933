"""
Kernel layer.

Pure, deterministic pricing kernels used by the trade slip. Kernels know
nothing about items, pools or snapshots; they operate on plain decimals and
are wrapped by `tradeslip.core.pricing` for validated use.
"""
