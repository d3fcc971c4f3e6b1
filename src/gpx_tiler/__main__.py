from gpx_tiler.cli import main

main()
