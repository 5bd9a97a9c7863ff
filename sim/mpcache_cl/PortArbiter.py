#=========================================================================
# PortArbiter
#=========================================================================
# Fixed-priority, bank-aware grant logic. Lower port ids win. With
# banking disabled every requester is granted, including ports that hit
# the same set in the same cycle.

class PortArbiter( object ):

  def __init__( s, nports, banking_enabled ):
    s.nports          = nports
    s.banking_enabled = banking_enabled

  # requests is an iterable of ( port, bank ) pairs. Returns the grant
  # bitmask, bit i set when port i may proceed this cycle.

  def arbitrate( s, requests ):

    grants      = 0
    banks_taken = set()

    for port, bank in sorted( requests ):
      if s.banking_enabled and bank in banks_taken:
        continue
      grants |= 1 << port
      banks_taken.add( bank )

    return grants

  def granted( s, grants, port ):
    return bool( ( grants >> port ) & 1 )
