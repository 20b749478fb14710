from dxcrm.server import main


main()
