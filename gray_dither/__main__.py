from gray_dither.cli import main

main()
