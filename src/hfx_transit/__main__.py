from hfx_transit.server import main

main()
